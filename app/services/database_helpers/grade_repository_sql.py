# /app/services/database_helpers/grade_repository_sql.py

"""
This module contains all the raw SQLAlchemy queries for the Grade table. It is
the only place that writes grades, and the place where multi-row transitions
(replace, reassign) are committed as a single transaction.

Any database error on commit (notably the `IntegrityError` raised by the
active-record unique index) is rolled back here and re-raised, so the
service layer can turn it into a conflict.
"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models.grade_models import Grade


class GradeRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    # --- Point and key lookups ---

    def get_grade(self, grade_id: str) -> Optional[Grade]:
        return self.db.query(Grade).filter(Grade.id == grade_id).first()

    def _key_query(self, student_id: str, class_id: str, term_id: str, topic_id: str, subtopic_id: Optional[str]):
        query = self.db.query(Grade).filter(
            Grade.student_id == student_id,
            Grade.class_id == class_id,
            Grade.term_id == term_id,
            Grade.topic_id == topic_id,
        )
        if subtopic_id:
            return query.filter(Grade.subtopic_id == subtopic_id)
        return query.filter(Grade.subtopic_id.is_(None))

    def get_grades_for_key(
        self, student_id: str, class_id: str, term_id: str, topic_id: str, subtopic_id: Optional[str]
    ) -> List[Grade]:
        """Every grade sharing the key, highest attempt first."""
        return (
            self._key_query(student_id, class_id, term_id, topic_id, subtopic_id)
            .order_by(Grade.attempt_number.desc(), Grade.created_at.desc())
            .all()
        )

    def get_grade_history(
        self, student_id: str, class_id: str, term_id: str, topic_id: str, subtopic_id: Optional[str]
    ) -> List[Grade]:
        """Every grade sharing the key in the order it was assessed (trend view)."""
        return (
            self._key_query(student_id, class_id, term_id, topic_id, subtopic_id)
            .order_by(Grade.assessed_date.asc(), Grade.attempt_number.asc())
            .all()
        )

    # --- Range queries ---

    def get_grades(
        self,
        term_id: Optional[str] = None,
        class_id: Optional[str] = None,
        course_id: Optional[str] = None,
        student_id: Optional[str] = None,
        work_type: Optional[str] = None,
        work_subtype: Optional[str] = None,
        start_date=None,
        end_date=None,
        class_ids: Optional[Iterable[str]] = None,
        student_ids: Optional[Iterable[str]] = None,
    ) -> List[Grade]:
        """
        Batched range query used by every read-side view. Filters are ANDed;
        `None` means "not filtered".
        """
        query = self.db.query(Grade)
        if term_id:
            query = query.filter(Grade.term_id == term_id)
        if class_id:
            query = query.filter(Grade.class_id == class_id)
        if course_id:
            query = query.filter(Grade.course_id == course_id)
        if student_id:
            query = query.filter(Grade.student_id == student_id)
        if work_type:
            query = query.filter(Grade.work_type == work_type)
        if work_subtype:
            query = query.filter(Grade.work_subtype == work_subtype)
        if start_date:
            query = query.filter(Grade.assessed_date >= start_date)
        if end_date:
            query = query.filter(Grade.assessed_date <= end_date)
        if class_ids is not None:
            query = query.filter(Grade.class_id.in_(list(class_ids)))
        if student_ids is not None:
            query = query.filter(Grade.student_id.in_(list(student_ids)))
        return query.order_by(Grade.assessed_date.desc(), Grade.attempt_number.desc(), Grade.created_at.desc()).all()

    def count_grades(self, term_id: Optional[str] = None, entered_by: Optional[str] = None) -> int:
        query = self.db.query(Grade)
        if term_id:
            query = query.filter(Grade.term_id == term_id)
        if entered_by:
            query = query.filter(Grade.entered_by == entered_by)
        return query.count()

    def get_recent_grades(self, limit: int = 10, class_ids: Optional[Iterable[str]] = None) -> List[Grade]:
        query = self.db.query(Grade)
        if class_ids is not None:
            query = query.filter(Grade.class_id.in_(list(class_ids)))
        return query.order_by(Grade.created_at.desc()).limit(limit).all()

    # --- Writes ---

    def add_grade(self, record: Dict) -> Grade:
        new_grade = Grade(**record)
        self.db.add(new_grade)
        self._commit()
        self.db.refresh(new_grade)
        return new_grade

    def replace_grades(self, grade_ids_to_delete: List[str], record: Dict) -> Grade:
        """
        Deletes the given grades and inserts `record` in one transaction. Either
        both happen or neither does.
        """
        self._detach_references(grade_ids_to_delete)
        self.db.query(Grade).filter(Grade.id.in_(grade_ids_to_delete)).delete()
        self.db.flush()
        new_grade = Grade(**record)
        self.db.add(new_grade)
        self._commit()
        self.db.refresh(new_grade)
        return new_grade

    def reassign_grade(self, target: Grade, successor_record: Dict) -> Grade:
        """Closes `target` and opens its successor in one transaction."""
        target.is_reassigned = True
        self.db.flush()
        successor = Grade(**successor_record)
        self.db.add(successor)
        self._commit()
        self.db.refresh(target)
        self.db.refresh(successor)
        return successor

    def update_grade(self, grade: Grade, data: Dict) -> Grade:
        for key, value in data.items():
            setattr(grade, key, value)
        self._commit()
        self.db.refresh(grade)
        return grade

    def delete_grade(self, grade_id: str) -> bool:
        grade = self.get_grade(grade_id)
        if not grade:
            return False
        self._detach_references([grade_id])
        self.db.delete(grade)
        self._commit()
        return True

    # --- Internals ---

    def _detach_references(self, grade_ids: List[str]):
        # Mirrors ON DELETE SET NULL for engines that do not enforce foreign keys.
        if not grade_ids:
            return
        self.db.execute(
            update(Grade)
            .where(Grade.original_grade_id.in_(grade_ids))
            .values(original_grade_id=None)
        )

    def _commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
