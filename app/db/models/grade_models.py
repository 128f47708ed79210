# /app/db/models/grade_models.py

"""
This module defines the SQLAlchemy ORM model for the `Grade` entity: one
assessed attempt by one student on one topic (or subtopic) in one term.

Re-assessment never overwrites a grade. Retakes and homework reassignments
append new rows that point back at their predecessor through
`original_grade_id`, so the full attempt history stays queryable.
"""

from sqlalchemy import Column, String, Float, Integer, Boolean, Date, DateTime, ForeignKey, Index, text
from sqlalchemy.sql import func

from ..base_class import Base


class Grade(Base):
    """
    SQLAlchemy model representing a single classified assessment attempt.

    `percentage` and `is_low_point` are derived from the marks by the score
    classifier and stored so that every read-side aggregation groups over the
    same classification.
    """
    id = Column(String, primary_key=True, index=True)

    student_id = Column(String, ForeignKey("students.id"), nullable=False, index=True)
    class_id = Column(String, ForeignKey("classes.id"), nullable=False, index=True)
    course_id = Column(String, ForeignKey("courses.id"), nullable=False, index=True)
    term_id = Column(String, ForeignKey("terms.id"), nullable=False, index=True)
    topic_id = Column(String, ForeignKey("topics.id"), nullable=False)
    # Null when the grade was recorded at topic granularity.
    subtopic_id = Column(String, ForeignKey("subtopics.id"), nullable=True)

    marks_obtained = Column(Float, nullable=False)
    total_marks = Column(Float, nullable=False)
    percentage = Column(Integer, nullable=False)
    is_low_point = Column(Boolean, nullable=False, index=True)

    work_type = Column(String, nullable=False)
    work_subtype = Column(String, nullable=False)

    attempt_number = Column(Integer, nullable=False, default=1)
    is_retake = Column(Boolean, nullable=False, default=False)
    is_reassigned = Column(Boolean, nullable=False, default=False)
    # Historical pointer only. Deleting the predecessor nulls it.
    original_grade_id = Column(String, ForeignKey("grades.id", ondelete="SET NULL"), nullable=True, index=True)

    assessed_date = Column(Date, nullable=False)
    notes = Column(String, nullable=True)
    # None for classwork; True/False once homework has been set.
    homework_submitted = Column(Boolean, nullable=True)

    entered_by = Column(String, ForeignKey("teachers.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


# At most one "active" grade (not a retake, not reassigned) per
# (student, class, term, topic, subtopic). A second concurrent submission for
# the same key fails here and is surfaced as a conflict.
Index(
    "uq_grades_active_key",
    Grade.student_id,
    Grade.class_id,
    Grade.term_id,
    Grade.topic_id,
    func.coalesce(Grade.subtopic_id, ""),
    unique=True,
    sqlite_where=text("is_retake = 0 AND is_reassigned = 0"),
    postgresql_where=text("NOT is_retake AND NOT is_reassigned"),
)

Index("ix_grades_class_term", Grade.class_id, Grade.term_id)
Index("ix_grades_term_student", Grade.term_id, Grade.student_id)
