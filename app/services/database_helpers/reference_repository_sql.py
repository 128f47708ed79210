# /app/services/database_helpers/reference_repository_sql.py

"""
Read-only queries over the reference tables (teachers, students, classes,
enrolments, courses, subjects, terms, topics). These rows are maintained by
the roster and curriculum surfaces; the grade engine only resolves them.

Relations are loaded eagerly here so that callers always receive a single
related object (or None), never a list they have to unwrap.
"""

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, joinedload

from app.db.models.reference_models import (
    Teacher, Student, Subject, Course, SchoolClass, Enrollment, Term, Topic, Subtopic
)


class ReferenceRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    # --- Classes ---

    def get_class_by_id(self, class_id: str) -> Optional[SchoolClass]:
        return self.db.query(SchoolClass).filter(SchoolClass.id == class_id).first()

    def get_classes(self, teacher_id: Optional[str] = None) -> List[SchoolClass]:
        query = self.db.query(SchoolClass).options(joinedload(SchoolClass.teacher))
        if teacher_id:
            query = query.filter(SchoolClass.teacher_id == teacher_id)
        return query.order_by(SchoolClass.name).all()

    # --- Enrolments ---

    def get_enrollments_for_class(self, class_id: str) -> List[Enrollment]:
        return (
            self.db.query(Enrollment)
            .options(joinedload(Enrollment.student), joinedload(Enrollment.course))
            .filter(Enrollment.class_id == class_id)
            .all()
        )

    def get_enrollments(self, class_ids: Optional[Iterable[str]] = None) -> List[Enrollment]:
        query = self.db.query(Enrollment)
        if class_ids is not None:
            query = query.filter(Enrollment.class_id.in_(list(class_ids)))
        return query.all()

    def get_enrollment(self, class_id: str, student_id: str, course_id: Optional[str] = None) -> Optional[Enrollment]:
        query = (
            self.db.query(Enrollment)
            .options(joinedload(Enrollment.course))
            .filter(Enrollment.class_id == class_id, Enrollment.student_id == student_id)
        )
        if course_id:
            query = query.filter(Enrollment.course_id == course_id)
        return query.order_by(Enrollment.enrolled_at.asc(), Enrollment.id.asc()).first()

    # --- Students / teachers ---

    def get_student_by_id(self, student_id: str) -> Optional[Student]:
        return self.db.query(Student).filter(Student.id == student_id).first()

    def get_students_by_ids(self, student_ids: Iterable[str]) -> List[Student]:
        return self.db.query(Student).filter(Student.id.in_(list(student_ids))).all()

    def get_teachers(self) -> List[Teacher]:
        return self.db.query(Teacher).filter(Teacher.role == "teacher").order_by(Teacher.full_name).all()

    def get_teachers_by_ids(self, teacher_ids: Iterable[str]) -> List[Teacher]:
        return self.db.query(Teacher).filter(Teacher.id.in_(list(teacher_ids))).all()

    # --- Curriculum ---

    def get_course_by_id(self, course_id: str) -> Optional[Course]:
        return self.db.query(Course).filter(Course.id == course_id).first()

    def get_courses(self) -> List[Course]:
        return self.db.query(Course).options(joinedload(Course.subject)).all()

    def get_subjects(self) -> List[Subject]:
        return self.db.query(Subject).all()

    def get_topic_by_id(self, topic_id: str) -> Optional[Topic]:
        return self.db.query(Topic).filter(Topic.id == topic_id).first()

    def get_subtopic_by_id(self, subtopic_id: str) -> Optional[Subtopic]:
        return self.db.query(Subtopic).filter(Subtopic.id == subtopic_id).first()

    def get_topics_for_subject(self, subject_id: str) -> List[Topic]:
        return self.db.query(Topic).filter(Topic.subject_id == subject_id).order_by(Topic.name).all()

    def get_subtopics_for_topics(self, topic_ids: Iterable[str]) -> List[Subtopic]:
        return (
            self.db.query(Subtopic)
            .filter(Subtopic.topic_id.in_(list(topic_ids)))
            .order_by(Subtopic.name)
            .all()
        )

    def get_topics_by_ids(self, topic_ids: Iterable[str]) -> List[Topic]:
        return self.db.query(Topic).filter(Topic.id.in_(list(topic_ids))).all()

    def get_subtopics_by_ids(self, subtopic_ids: Iterable[str]) -> List[Subtopic]:
        return self.db.query(Subtopic).filter(Subtopic.id.in_(list(subtopic_ids))).all()

    # --- Terms ---

    def get_term_by_id(self, term_id: str) -> Optional[Term]:
        return self.db.query(Term).filter(Term.id == term_id).first()

    def get_active_term(self) -> Optional[Term]:
        """The active term, or the most recently created one when none is flagged active."""
        term = self.db.query(Term).filter(Term.is_active.is_(True)).first()
        if term:
            return term
        return self.db.query(Term).order_by(Term.created_at.desc()).first()

    def get_all_terms(self) -> List[Term]:
        return self.db.query(Term).order_by(Term.start_date.asc(), Term.created_at.asc()).all()

    # --- Counts ---

    def count_students(self) -> int:
        return self.db.query(Student).count()

    def count_teachers(self) -> int:
        return self.db.query(Teacher).filter(Teacher.role == "teacher").count()

    def count_classes(self) -> int:
        return self.db.query(SchoolClass).count()

    def count_courses(self) -> int:
        return self.db.query(Course).count()
