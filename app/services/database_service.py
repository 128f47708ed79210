# /app/services/database_service.py

from typing import Dict, Generator, Iterable, List, Optional

from sqlalchemy.orm import Session
from fastapi import Depends

# --- Core Database Setup ---
from app.db.database import get_db

# --- Repository Imports ---
from .database_helpers.grade_repository_sql import GradeRepositorySQL
from .database_helpers.reference_repository_sql import ReferenceRepositorySQL
from .database_helpers.contact_repository_sql import ContactRepositorySQL


class DatabaseService:
    def __init__(self, db_session: Session):
        """
        Facade over the SQL repositories. Services talk to this object only,
        so the persistence collaborator can be swapped for a double in tests.
        """
        if db_session is None:
            raise ValueError("A database session is required.")
        self.grade_repo = GradeRepositorySQL(db_session)
        self.reference_repo = ReferenceRepositorySQL(db_session)
        self.contact_repo = ContactRepositorySQL(db_session)

    # --- GRADE METHODS (DELEGATED) ---
    def get_grade(self, grade_id: str): return self.grade_repo.get_grade(grade_id)
    def get_grades_for_key(self, student_id: str, class_id: str, term_id: str, topic_id: str, subtopic_id: Optional[str]) -> List:
        return self.grade_repo.get_grades_for_key(student_id, class_id, term_id, topic_id, subtopic_id)
    def get_grade_history(self, student_id: str, class_id: str, term_id: str, topic_id: str, subtopic_id: Optional[str]) -> List:
        return self.grade_repo.get_grade_history(student_id, class_id, term_id, topic_id, subtopic_id)
    def get_grades(self, **filters) -> List: return self.grade_repo.get_grades(**filters)
    def count_grades(self, term_id: Optional[str] = None, entered_by: Optional[str] = None) -> int:
        return self.grade_repo.count_grades(term_id=term_id, entered_by=entered_by)
    def get_recent_grades(self, limit: int = 10, class_ids: Optional[Iterable[str]] = None) -> List:
        return self.grade_repo.get_recent_grades(limit=limit, class_ids=class_ids)
    def add_grade(self, record: Dict): return self.grade_repo.add_grade(record)
    def replace_grades(self, grade_ids_to_delete: List[str], record: Dict): return self.grade_repo.replace_grades(grade_ids_to_delete, record)
    def reassign_grade(self, target, successor_record: Dict): return self.grade_repo.reassign_grade(target, successor_record)
    def update_grade(self, grade, data: Dict): return self.grade_repo.update_grade(grade, data)
    def delete_grade(self, grade_id: str) -> bool: return self.grade_repo.delete_grade(grade_id)

    # --- REFERENCE DATA METHODS (DELEGATED) ---
    def get_class_by_id(self, class_id: str): return self.reference_repo.get_class_by_id(class_id)
    def get_classes(self, teacher_id: Optional[str] = None) -> List: return self.reference_repo.get_classes(teacher_id=teacher_id)
    def get_enrollments_for_class(self, class_id: str) -> List: return self.reference_repo.get_enrollments_for_class(class_id)
    def get_enrollments(self, class_ids: Optional[Iterable[str]] = None) -> List: return self.reference_repo.get_enrollments(class_ids=class_ids)
    def get_enrollment(self, class_id: str, student_id: str, course_id: Optional[str] = None):
        return self.reference_repo.get_enrollment(class_id, student_id, course_id=course_id)
    def get_student_by_id(self, student_id: str): return self.reference_repo.get_student_by_id(student_id)
    def get_students_by_ids(self, student_ids: Iterable[str]) -> List: return self.reference_repo.get_students_by_ids(student_ids)
    def get_teachers(self) -> List: return self.reference_repo.get_teachers()
    def get_teachers_by_ids(self, teacher_ids: Iterable[str]) -> List: return self.reference_repo.get_teachers_by_ids(teacher_ids)
    def get_course_by_id(self, course_id: str): return self.reference_repo.get_course_by_id(course_id)
    def get_courses(self) -> List: return self.reference_repo.get_courses()
    def get_subjects(self) -> List: return self.reference_repo.get_subjects()
    def get_topic_by_id(self, topic_id: str): return self.reference_repo.get_topic_by_id(topic_id)
    def get_subtopic_by_id(self, subtopic_id: str): return self.reference_repo.get_subtopic_by_id(subtopic_id)
    def get_topics_for_subject(self, subject_id: str) -> List: return self.reference_repo.get_topics_for_subject(subject_id)
    def get_subtopics_for_topics(self, topic_ids: Iterable[str]) -> List: return self.reference_repo.get_subtopics_for_topics(topic_ids)
    def get_topics_by_ids(self, topic_ids: Iterable[str]) -> List: return self.reference_repo.get_topics_by_ids(topic_ids)
    def get_subtopics_by_ids(self, subtopic_ids: Iterable[str]) -> List: return self.reference_repo.get_subtopics_by_ids(subtopic_ids)
    def get_term_by_id(self, term_id: str): return self.reference_repo.get_term_by_id(term_id)
    def get_active_term(self): return self.reference_repo.get_active_term()
    def get_all_terms(self) -> List: return self.reference_repo.get_all_terms()
    def count_students(self) -> int: return self.reference_repo.count_students()
    def count_teachers(self) -> int: return self.reference_repo.count_teachers()
    def count_classes(self) -> int: return self.reference_repo.count_classes()
    def count_courses(self) -> int: return self.reference_repo.count_courses()

    # --- PARENT CONTACT METHODS (DELEGATED) ---
    def get_contacts(self, term_id: str, student_ids: Iterable[str]) -> List: return self.contact_repo.get_contacts(term_id, student_ids)
    def upsert_contact(self, record: Dict): return self.contact_repo.upsert_contact(record)


def get_db_service(db: Session = Depends(get_db)) -> Generator[DatabaseService, None, None]:
    """FastAPI dependency that provides a DatabaseService bound to the request's session."""
    yield DatabaseService(db_session=db)
