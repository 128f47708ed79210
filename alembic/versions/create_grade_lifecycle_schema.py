"""Create reference, grade and parent contact tables

Revision ID: 3c1e9a4f7b20
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1e9a4f7b20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the reference tables, the grades table with its active-key index, and the contact log."""
    op.create_table(
        'teachers',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='teacher'),
    )
    op.create_index('ix_teachers_role', 'teachers', ['role'])

    op.create_table(
        'students',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('year_group', sa.String(), nullable=True),
    )
    op.create_index('ix_students_name', 'students', ['name'])

    op.create_table(
        'subjects',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
    )
    op.create_table(
        'courses',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('subject_id', sa.String(), sa.ForeignKey('subjects.id'), nullable=False, index=True),
    )
    op.create_table(
        'classes',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, index=True),
        sa.Column('teacher_id', sa.String(), sa.ForeignKey('teachers.id'), nullable=True, index=True),
    )
    op.create_table(
        'enrollments',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('class_id', sa.String(), sa.ForeignKey('classes.id'), nullable=False, index=True),
        sa.Column('student_id', sa.String(), sa.ForeignKey('students.id'), nullable=False, index=True),
        sa.Column('course_id', sa.String(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('class_id', 'student_id', 'course_id', name='uq_enrollment'),
    )
    op.create_table(
        'terms',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'topics',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('subject_id', sa.String(), sa.ForeignKey('subjects.id'), nullable=False, index=True),
    )
    op.create_table(
        'subtopics',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('topic_id', sa.String(), sa.ForeignKey('topics.id'), nullable=False, index=True),
    )

    op.create_table(
        'grades',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('student_id', sa.String(), sa.ForeignKey('students.id'), nullable=False, index=True),
        sa.Column('class_id', sa.String(), sa.ForeignKey('classes.id'), nullable=False, index=True),
        sa.Column('course_id', sa.String(), sa.ForeignKey('courses.id'), nullable=False, index=True),
        sa.Column('term_id', sa.String(), sa.ForeignKey('terms.id'), nullable=False, index=True),
        sa.Column('topic_id', sa.String(), sa.ForeignKey('topics.id'), nullable=False),
        sa.Column('subtopic_id', sa.String(), sa.ForeignKey('subtopics.id'), nullable=True),
        sa.Column('marks_obtained', sa.Float(), nullable=False),
        sa.Column('total_marks', sa.Float(), nullable=False),
        sa.Column('percentage', sa.Integer(), nullable=False),
        sa.Column('is_low_point', sa.Boolean(), nullable=False, index=True),
        sa.Column('work_type', sa.String(), nullable=False),
        sa.Column('work_subtype', sa.String(), nullable=False),
        sa.Column('attempt_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_retake', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_reassigned', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('original_grade_id', sa.String(), sa.ForeignKey('grades.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('assessed_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('homework_submitted', sa.Boolean(), nullable=True),
        sa.Column('entered_by', sa.String(), sa.ForeignKey('teachers.id'), nullable=True, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        'uq_grades_active_key',
        'grades',
        ['student_id', 'class_id', 'term_id', 'topic_id', sa.text("coalesce(subtopic_id, '')")],
        unique=True,
        sqlite_where=sa.text('is_retake = 0 AND is_reassigned = 0'),
        postgresql_where=sa.text('NOT is_retake AND NOT is_reassigned'),
    )
    op.create_index('ix_grades_class_term', 'grades', ['class_id', 'term_id'])
    op.create_index('ix_grades_term_student', 'grades', ['term_id', 'student_id'])

    op.create_table(
        'parent_contacts',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('student_id', sa.String(), sa.ForeignKey('students.id'), nullable=False, index=True),
        sa.Column('term_id', sa.String(), sa.ForeignKey('terms.id'), nullable=False, index=True),
        sa.Column('contact_type', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('contacted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('student_id', 'term_id', 'contact_type', name='uq_parent_contact'),
    )


def downgrade() -> None:
    """Drop everything created by upgrade, dependants first."""
    op.drop_table('parent_contacts')
    op.drop_index('ix_grades_term_student', table_name='grades')
    op.drop_index('ix_grades_class_term', table_name='grades')
    op.drop_index('uq_grades_active_key', table_name='grades')
    op.drop_table('grades')
    for table in ('subtopics', 'topics', 'terms', 'enrollments', 'classes', 'courses', 'subjects', 'students', 'teachers'):
        op.drop_table(table)
