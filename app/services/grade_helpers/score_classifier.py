# /app/services/grade_helpers/score_classifier.py

"""
Turns raw marks into the stored classification of a grade.

Every consumer (entry, inline edit, retake, reassignment) goes through this
module, so the pass threshold and rounding rule exist in exactly one place.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple, Union

from app.core.errors import ValidationError

LOW_POINT_THRESHOLD = 80

Number = Union[int, float]


class ScoreClassification(NamedTuple):
    percentage: int
    is_low_point: bool


def validate_marks(marks_obtained: Number, total_marks: Number) -> None:
    """Rejects impossible scores. Values are never clamped."""
    if marks_obtained is None or total_marks is None:
        raise ValidationError("Marks obtained and total marks are required.")
    if total_marks < 1:
        raise ValidationError("Total marks must be at least 1.")
    if marks_obtained < 0:
        raise ValidationError("Marks obtained cannot be negative.")
    if marks_obtained > total_marks:
        raise ValidationError("Marks obtained cannot exceed total marks.")


def calculate_percentage(marks_obtained: Number, total_marks: Number) -> int:
    # Decimal keeps 72/90 at exactly 80 and rounds .5 upwards.
    ratio = Decimal(str(marks_obtained)) * 100 / Decimal(str(total_marks))
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def is_low_point(percentage: int) -> bool:
    return percentage < LOW_POINT_THRESHOLD


def classify_score(marks_obtained: Number, total_marks: Number) -> ScoreClassification:
    """Assumes validated input; call `validate_marks` first at the boundary."""
    percentage = calculate_percentage(marks_obtained, total_marks)
    return ScoreClassification(percentage=percentage, is_low_point=is_low_point(percentage))
