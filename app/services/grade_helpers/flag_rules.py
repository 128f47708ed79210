# /app/services/grade_helpers/flag_rules.py

"""
The intervention-flag model. A student's flag level for a term is a step
function of how many low-point grades they have in that term; every retake
attempt counts as its own grade.

Dashboards, flag lists, progress summaries and reports all call into this
module instead of re-deriving the breakpoints.
"""

from typing import Dict, Iterable, List, Union

import pandas as pd

# (minimum low points, flag level), checked from the top down.
FLAG_BREAKPOINTS = ((5, 3), (4, 2), (3, 1))

INTERVENTION_LABELS = {
    0: "On Track",
    1: "Message Parents",
    2: "Call Parents",
    3: "Meeting Required",
}


def flag_level_for(low_point_count: int) -> int:
    for minimum, level in FLAG_BREAKPOINTS:
        if low_point_count >= minimum:
            return level
    return 0


def intervention_label(flag_level: int) -> str:
    return INTERVENTION_LABELS[flag_level]


def low_point_counts(grades_df: pd.DataFrame, by: Union[str, List[str]] = "student_id") -> pd.Series:
    """Low-point grades per `by`, including groups that have none."""
    if grades_df.empty:
        return pd.Series(dtype="int64")
    return grades_df.groupby(by)["is_low_point"].sum().astype(int)


def flag_levels(grades_df: pd.DataFrame, by: Union[str, List[str]] = "student_id") -> pd.Series:
    """Flag level per `by` computed from a grades frame."""
    return low_point_counts(grades_df, by=by).apply(flag_level_for)


def flag_histogram(levels: Iterable[int]) -> Dict[str, int]:
    """Students per flag level. The cohort breakdown is this histogram, never a sum of low points."""
    histogram = {"level_0": 0, "level_1": 0, "level_2": 0, "level_3": 0}
    for level in levels:
        histogram[f"level_{int(level)}"] += 1
    return histogram
