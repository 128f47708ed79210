# /tests/test_score_classifier.py

import pytest

from app.core.errors import ValidationError
from app.services.grade_helpers import score_classifier


@pytest.mark.parametrize("marks, total, expected_percentage, expected_low_point", [
    (72, 90, 80, False),   # exactly on the threshold
    (40, 60, 67, True),
    (79, 100, 79, True),
    (80, 100, 80, False),
    (0, 10, 0, True),
    (10, 10, 100, False),
    (1, 8, 13, True),      # 12.5 rounds half up
    (7.5, 10, 75, True),
])
def test_classify_score(marks, total, expected_percentage, expected_low_point):
    result = score_classifier.classify_score(marks, total)
    assert result.percentage == expected_percentage
    assert result.is_low_point is expected_low_point


def test_classification_is_idempotent():
    """Classifying the same marks twice gives identical results."""
    first = score_classifier.classify_score(53, 71)
    second = score_classifier.classify_score(53, 71)
    assert first == second


@pytest.mark.parametrize("marks, total, message", [
    (11, 10, "cannot exceed"),
    (-1, 10, "cannot be negative"),
    (5, 0, "at least 1"),
    (None, 10, "required"),
])
def test_validate_marks_rejects_impossible_scores(marks, total, message):
    with pytest.raises(ValidationError) as exc_info:
        score_classifier.validate_marks(marks, total)
    assert message in exc_info.value.message


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        score_classifier.validate_marks(20, 10)
