# /app/services/dashboard_helpers/aggregations.py

"""
Pure aggregation functions behind the dashboards.

Every function takes an already-fetched snapshot (a grades DataFrame from
`grades_to_frame` plus reference rows) and returns plain dicts ready for the
pydantic contracts in `dashboard_model`. None of them touch the database or
the cache, so they can be tested with hand-built frames.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List

import pandas as pd

from ..grade_helpers import flag_rules

# Distribution buckets: [lower, upper) percentage bounds.
DISTRIBUTION_BINS = [-1, 60, 80, 101]
DISTRIBUTION_LABELS = ["below_60", "between_60_and_80", "above_80"]
CRITICAL_STUDENT_LIMIT = 5


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _percent_of(part: int, whole: int) -> int:
    return round_half_up(part * 100 / whole) if whole else 0


def institute_performance(grades_df: pd.DataFrame) -> Dict[str, int]:
    if grades_df.empty:
        return {"institute_average": 0, "low_point_percentage": 0}
    return {
        "institute_average": round_half_up(grades_df["percentage"].mean()),
        "low_point_percentage": _percent_of(int(grades_df["is_low_point"].sum()), len(grades_df)),
    }


def flag_breakdown(grades_df: pd.DataFrame) -> Dict[str, int]:
    """Students per flag level over the whole snapshot."""
    return flag_rules.flag_histogram(flag_rules.flag_levels(grades_df, by="student_id").tolist())


def critical_students(grades_df: pd.DataFrame, limit: int = CRITICAL_STUDENT_LIMIT) -> List[Dict]:
    """Students at the top flag level, most low points first."""
    counts = flag_rules.low_point_counts(grades_df, by="student_id")
    top_level = max(flag_rules.INTERVENTION_LABELS)
    critical = [
        {"student_id": student_id, "low_point_count": int(count), "flag_level": top_level}
        for student_id, count in counts.items()
        if flag_rules.flag_level_for(int(count)) == top_level
    ]
    critical.sort(key=lambda row: (-row["low_point_count"], row["student_id"]))
    return critical[:limit]


def grade_distribution(grades_df: pd.DataFrame) -> Dict[str, int]:
    if grades_df.empty:
        return {label: 0 for label in DISTRIBUTION_LABELS}
    buckets = pd.cut(grades_df["percentage"], bins=DISTRIBUTION_BINS, labels=DISTRIBUTION_LABELS, right=False)
    counts = buckets.value_counts()
    return {label: int(counts.get(label, 0)) for label in DISTRIBUTION_LABELS}


def class_performance(grades_df: pd.DataFrame, classes: Iterable, enrollments: Iterable) -> List[Dict]:
    """One row per class, including classes with no grades in the term."""
    students_per_class: Dict[str, set] = {}
    for enrollment in enrollments:
        students_per_class.setdefault(enrollment.class_id, set()).add(enrollment.student_id)

    per_class = {}
    if not grades_df.empty:
        per_class = grades_df.groupby("class_id").agg(
            grades_entered=("id", "count"),
            average_percentage=("percentage", "mean"),
            low_point_count=("is_low_point", "sum"),
        ).to_dict(orient="index")

    rows = []
    for school_class in classes:
        stats = per_class.get(school_class.id, {})
        rows.append({
            "class_id": school_class.id,
            "class_name": school_class.name,
            "teacher_name": school_class.teacher.full_name if school_class.teacher else "Unassigned",
            "student_count": len(students_per_class.get(school_class.id, ())),
            "grades_entered": int(stats.get("grades_entered", 0)),
            "average_percentage": round_half_up(stats["average_percentage"]) if stats else 0,
            "low_point_count": int(stats.get("low_point_count", 0)),
        })
    return sorted(rows, key=lambda r: r["class_name"])


def teacher_activity(grades_df: pd.DataFrame, teachers: Iterable, classes: Iterable) -> List[Dict]:
    """Grades entered per teacher in the snapshot and when they last entered one."""
    class_counts: Dict[str, int] = {}
    for school_class in classes:
        if school_class.teacher_id:
            class_counts[school_class.teacher_id] = class_counts.get(school_class.teacher_id, 0) + 1

    per_teacher = {}
    if not grades_df.empty:
        per_teacher = grades_df.groupby("entered_by").agg(
            grades_entered=("id", "count"),
            last_activity=("created_at", "max"),
        ).to_dict(orient="index")

    rows = []
    for teacher in teachers:
        stats = per_teacher.get(teacher.id, {})
        last_activity = stats.get("last_activity")
        rows.append({
            "teacher_id": teacher.id,
            "teacher_name": teacher.full_name,
            "class_count": class_counts.get(teacher.id, 0),
            "grades_entered": int(stats.get("grades_entered", 0)),
            "last_activity": None if last_activity is None or pd.isna(last_activity) else pd.Timestamp(last_activity).to_pydatetime(),
        })
    return sorted(rows, key=lambda r: (-r["grades_entered"], r["teacher_name"]))


def subject_flag_totals(grades_df: pd.DataFrame, courses: Iterable, subjects: Iterable) -> List[Dict]:
    """
    The flag rule applied per student within each subject (grade -> course ->
    subject); the subject total is the sum of those per-student levels.
    """
    if grades_df.empty:
        return []
    subject_names = {s.id: s.name for s in subjects}
    course_subjects = {c.id: c.subject_id for c in courses}

    frame = grades_df.assign(subject_id=grades_df["course_id"].map(course_subjects)).dropna(subset=["subject_id"])
    if frame.empty:
        return []
    levels = flag_rules.flag_levels(frame, by=["subject_id", "student_id"])

    rows = []
    for subject_id, subject_levels in levels.groupby(level="subject_id"):
        rows.append({
            "subject_id": subject_id,
            "subject_name": subject_names.get(subject_id, subject_id),
            "flag_total": int(subject_levels.sum()),
            "flagged_students": int((subject_levels > 0).sum()),
        })
    return sorted(rows, key=lambda r: (-r["flag_total"], r["subject_name"]))


def term_trends(grades_df: pd.DataFrame, terms: Iterable) -> List[Dict]:
    """Per-term averages in term order; `terms` must already be sorted by start date."""
    per_term = {}
    if not grades_df.empty:
        per_term = grades_df.groupby("term_id").agg(
            grade_count=("id", "count"),
            average_percentage=("percentage", "mean"),
            low_points=("is_low_point", "sum"),
        ).to_dict(orient="index")

    points = []
    for term in terms:
        stats = per_term.get(term.id)
        if not stats:
            continue
        count = int(stats["grade_count"])
        points.append({
            "term_id": term.id,
            "term_name": term.name,
            "average_percentage": round_half_up(stats["average_percentage"]),
            "low_point_percentage": _percent_of(int(stats["low_points"]), count),
            "grade_count": count,
        })
    return points


def recent_activity(grades: Iterable, teacher_names: Dict[str, str], student_names: Dict[str, str], class_names: Dict[str, str]) -> List[Dict]:
    return [
        {
            "grade_id": g.id,
            "teacher_name": teacher_names.get(g.entered_by, "Unknown"),
            "student_name": student_names.get(g.student_id, g.student_id),
            "class_name": class_names.get(g.class_id, g.class_id),
            "percentage": g.percentage,
            "is_low_point": g.is_low_point,
            "created_at": g.created_at,
        }
        for g in grades
    ]
