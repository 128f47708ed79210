# /app/services/grade_helpers/reassignment.py

"""
Homework reassignment: close a low-scoring homework grade and open an empty
successor against a new deadline. Append-only; nothing is deleted.
"""

from datetime import date
from typing import Dict, Optional, Sequence

from app.core.errors import ConflictError, NotHomeworkError
from app.models.grade_model import WorkType

from .attempt_versioning import next_attempt_number


def ensure_reassignable(target) -> None:
    if target.work_type != WorkType.HOMEWORK.value:
        raise NotHomeworkError("Only homework can be reassigned.", existing_grade_ids=[target.id])
    if target.is_reassigned:
        raise ConflictError("This homework has already been reassigned.", existing_grade_ids=[target.id])


def build_successor_record(
    target,
    new_deadline: date,
    key_grades: Sequence,
    grade_id: str,
    entered_by: Optional[str],
    notes: Optional[str] = None,
) -> Dict:
    """
    The successor carries the live state of the assignment: zero marks out
    of the same total, low point until resubmitted, and the next attempt number.
    """
    attempt_number = max(target.attempt_number or 1, next_attempt_number(key_grades) - 1) + 1
    return {
        "id": grade_id,
        "student_id": target.student_id,
        "class_id": target.class_id,
        "course_id": target.course_id,
        "term_id": target.term_id,
        "topic_id": target.topic_id,
        "subtopic_id": target.subtopic_id,
        "work_type": WorkType.HOMEWORK.value,
        "work_subtype": target.work_subtype,
        "marks_obtained": 0,
        "total_marks": target.total_marks,
        "percentage": 0,
        "is_low_point": True,
        "attempt_number": attempt_number,
        # A successor of a retake stays in the retake chain.
        "is_retake": bool(target.is_retake),
        "is_reassigned": False,
        "original_grade_id": target.id,
        "assessed_date": new_deadline,
        "homework_submitted": False,
        "notes": notes or f"Reassigned from {target.assessed_date.isoformat()}",
        "entered_by": entered_by,
    }
