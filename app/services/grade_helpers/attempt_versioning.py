# /app/services/grade_helpers/attempt_versioning.py

"""
Decides what a new submission means for an existing
(student, class, term, topic, subtopic) key: a fresh record, a replacement
of the active record, a new attempt in a retake chain, or nothing at all.

This module is pure. It takes the grades already stored for the key and the
teacher's resolution, and returns a decision; `grade_service` applies it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from app.models.grade_model import ConflictResolution


class DecisionKind(str, Enum):
    CREATE = "create"
    REPLACE_ACTIVE = "replace_active"
    APPEND_RETAKE = "append_retake"
    SKIP_DUPLICATE = "skip_duplicate"
    CONFLICT = "conflict"


@dataclass
class VersioningDecision:
    kind: DecisionKind
    attempt_number: Optional[int] = None
    is_retake: bool = False
    original_grade_id: Optional[str] = None
    grade_ids_to_delete: List[str] = field(default_factory=list)
    existing: List = field(default_factory=list)


def active_set(key_grades: Sequence) -> List:
    """Grades on the key that are neither retakes nor reassigned, highest attempt first."""
    active = [g for g in key_grades if not g.is_retake and not g.is_reassigned]
    return sorted(active, key=lambda g: g.attempt_number or 1, reverse=True)


def next_attempt_number(key_grades: Sequence) -> int:
    """One past the highest attempt ever recorded on the key, so numbers are never reused."""
    if not key_grades:
        return 1
    return max((g.attempt_number or 1) for g in key_grades) + 1


def lineage_ids(roots: Sequence, key_grades: Sequence) -> List[str]:
    """
    Ids of `roots` plus every grade on the key connected to them through
    `original_grade_id`, in either direction.
    """
    by_id = {g.id: g for g in key_grades}
    children = {}
    for g in key_grades:
        if g.original_grade_id:
            children.setdefault(g.original_grade_id, []).append(g.id)

    seen = set()
    stack = [g.id for g in roots]
    while stack:
        grade_id = stack.pop()
        if grade_id in seen:
            continue
        seen.add(grade_id)
        stack.extend(children.get(grade_id, []))
        parent = by_id.get(grade_id)
        if parent is not None and parent.original_grade_id in by_id:
            stack.append(parent.original_grade_id)
    return [g.id for g in key_grades if g.id in seen]


def decide(key_grades: Sequence, resolution: Optional[ConflictResolution] = None) -> VersioningDecision:
    active = active_set(key_grades)

    if not active:
        # Leftover retakes on the key keep their numbers; a fresh record continues after them.
        return VersioningDecision(kind=DecisionKind.CREATE, attempt_number=next_attempt_number(key_grades))

    if resolution is None:
        return VersioningDecision(kind=DecisionKind.CONFLICT, existing=active)

    if resolution == ConflictResolution.SKIP:
        return VersioningDecision(kind=DecisionKind.SKIP_DUPLICATE, existing=active)

    if resolution == ConflictResolution.REPLACE:
        return VersioningDecision(
            kind=DecisionKind.REPLACE_ACTIVE,
            attempt_number=1,
            grade_ids_to_delete=lineage_ids(active, key_grades),
            existing=active,
        )

    return VersioningDecision(
        kind=DecisionKind.APPEND_RETAKE,
        attempt_number=next_attempt_number(key_grades),
        is_retake=True,
        original_grade_id=active[0].id,
        existing=active,
    )
