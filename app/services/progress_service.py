# /app/services/progress_service.py

"""
Progress views for teachers: a per-student summary of one class for a term,
a per-topic drill-down for one student, and the single-student gradebook.

Each view fetches the term's grades once and aggregates them with pandas;
nothing here issues a query per student or per topic.
"""

from typing import Dict, List, Optional

import pandas as pd

from ..core.deps import AuthContext
from ..core.errors import NotFoundError
from ..models import grade_model, progress_model
from ..models.progress_model import GradebookFilter, RowType
from .access_control import require_class_access, require_student, require_student_access, require_term
from .database_service import DatabaseService
from .grade_helpers import flag_rules
from .grade_helpers.frames import grades_to_frame


def _mean(series: pd.Series) -> float:
    return round(float(series.mean()), 1) if not series.empty else 0.0


def get_class_progress(
    class_id: str,
    term_id: str,
    db: DatabaseService,
    auth: AuthContext,
) -> List[progress_model.StudentProgressSummary]:
    """
    One row per enrolled student. Students without grades this term are
    listed with zeros and "On Track".
    """
    require_class_access(db, class_id, auth)
    require_term(db, term_id)

    enrollments = db.get_enrollments_for_class(class_id)
    grades_df = grades_to_frame(db.get_grades(term_id=term_id, class_id=class_id))

    stats: Dict[str, Dict] = {}
    if not grades_df.empty:
        grouped = grades_df.groupby("student_id").agg(
            total_grades=("id", "count"),
            low_point_count=("is_low_point", "sum"),
            average_percentage=("percentage", "mean"),
        )
        stats = grouped.to_dict(orient="index")

    rows = []
    seen = set()
    for enrollment in enrollments:
        if enrollment.student_id in seen:
            continue
        seen.add(enrollment.student_id)

        student_stats = stats.get(enrollment.student_id, {})
        low_points = int(student_stats.get("low_point_count", 0))
        level = flag_rules.flag_level_for(low_points)
        rows.append(progress_model.StudentProgressSummary(
            student_id=enrollment.student_id,
            student_name=enrollment.student.name,
            year_group=enrollment.student.year_group,
            course_name=enrollment.course.name if enrollment.course else None,
            total_grades=int(student_stats.get("total_grades", 0)),
            low_point_count=low_points,
            flag_level=level,
            status_label=flag_rules.intervention_label(level),
            average_percentage=round(float(student_stats.get("average_percentage", 0.0)), 1),
        ))
    return sorted(rows, key=lambda r: r.student_name)


def _topic_performance(grades_df: pd.DataFrame, db: DatabaseService) -> List[progress_model.TopicPerformance]:
    topics = {t.id: t.name for t in db.get_topics_by_ids(grades_df["topic_id"].unique().tolist())}
    subtopic_ids = grades_df["subtopic_id"].dropna().unique().tolist()
    subtopics = {s.id: s.name for s in db.get_subtopics_by_ids(subtopic_ids)}

    ordered = grades_df.sort_values(["assessed_date", "attempt_number"])
    performance = []
    for (topic_id, subtopic_id), group in ordered.groupby(["topic_id", "subtopic_id"], dropna=False, sort=False):
        subtopic_id = None if pd.isna(subtopic_id) else subtopic_id
        performance.append(progress_model.TopicPerformance(
            topic_id=topic_id,
            subtopic_id=subtopic_id,
            topic_name=topics.get(topic_id, topic_id),
            subtopic_name=subtopics.get(subtopic_id) if subtopic_id else None,
            count=len(group),
            best=int(group["percentage"].max()),
            latest=int(group["percentage"].iloc[-1]),
            average=_mean(group["percentage"]),
            low_point_count=int(group["is_low_point"].sum()),
        ))
    return performance


def get_student_detail_progress(
    student_id: str,
    term_id: str,
    db: DatabaseService,
    auth: AuthContext,
) -> progress_model.StudentDetailProgress:
    """Overall term statistics, per-topic performance and the full timeline for one student."""
    student = require_student_access(db, student_id, auth)
    require_term(db, term_id)

    grades = sorted(
        db.get_grades(term_id=term_id, student_id=student_id),
        key=lambda g: (g.assessed_date, g.attempt_number),
    )
    grades_df = grades_to_frame(grades)

    low_points = int(grades_df["is_low_point"].sum()) if not grades_df.empty else 0
    level = flag_rules.flag_level_for(low_points)
    return progress_model.StudentDetailProgress(
        student_id=student.id,
        student_name=student.name,
        term_id=term_id,
        overall=progress_model.OverallStats(
            total_grades=len(grades),
            total_low_points=low_points,
            average_percentage=_mean(grades_df["percentage"]),
        ),
        flag_level=level,
        status_label=flag_rules.intervention_label(level),
        topic_performance=_topic_performance(grades_df, db) if not grades_df.empty else [],
        timeline=[grade_model.Grade.model_validate(g) for g in grades],
    )


# --- Gradebook ---

def _row_id(topic_id: str, subtopic_id: Optional[str]) -> str:
    return f"subtopic-{subtopic_id}" if subtopic_id else f"topic-{topic_id}"


def _work_filter_query(work_filter: GradebookFilter) -> Dict[str, str]:
    if work_filter in (GradebookFilter.CLASSWORK, GradebookFilter.HOMEWORK):
        return {"work_type": work_filter.value}
    if work_filter in (GradebookFilter.WORKSHEET, GradebookFilter.PASTPAPER):
        return {"work_subtype": work_filter.value}
    return {}


def get_gradebook(
    class_id: str,
    student_id: str,
    term_id: str,
    db: DatabaseService,
    auth: AuthContext,
    work_filter: GradebookFilter = GradebookFilter.ALL,
) -> progress_model.Gradebook:
    """
    One student's gradebook in a class: a row for every topic of the course's
    subject, each followed by its subtopics, whether or not anything has been
    graded yet. Every row lists its attempts newest first and exposes the
    newest as `grade`.
    """
    school_class = require_class_access(db, class_id, auth)
    student = require_student(db, student_id)
    require_term(db, term_id)
    enrollment = db.get_enrollment(class_id, student_id)
    if enrollment is None:
        raise NotFoundError(f"Student {student_id} is not enrolled in class {class_id}.")
    course = enrollment.course

    topics = db.get_topics_for_subject(course.subject_id)
    subtopics_by_topic: Dict[str, List] = {}
    for subtopic in db.get_subtopics_for_topics([t.id for t in topics]):
        subtopics_by_topic.setdefault(subtopic.topic_id, []).append(subtopic)

    rows: Dict[str, progress_model.GradebookRow] = {}
    for topic in topics:
        children = subtopics_by_topic.get(topic.id, [])
        rows[_row_id(topic.id, None)] = progress_model.GradebookRow(
            row_id=_row_id(topic.id, None),
            row_type=RowType.TOPIC,
            topic_id=topic.id,
            name=topic.name,
            has_children=bool(children),
        )
        for subtopic in children:
            rows[_row_id(topic.id, subtopic.id)] = progress_model.GradebookRow(
                row_id=_row_id(topic.id, subtopic.id),
                row_type=RowType.SUBTOPIC,
                topic_id=topic.id,
                subtopic_id=subtopic.id,
                parent_topic_id=topic.id,
                name=subtopic.name,
            )

    grades = db.get_grades(
        term_id=term_id, class_id=class_id, student_id=student_id, **_work_filter_query(work_filter)
    )
    for grade in grades:
        row = rows.get(_row_id(grade.topic_id, grade.subtopic_id))
        if row is None:
            continue
        row.all_grades.append(grade_model.Grade.model_validate(grade))
    for row in rows.values():
        if row.all_grades:
            row.grade = row.all_grades[0]

    return progress_model.Gradebook(
        class_id=school_class.id,
        class_name=school_class.name,
        student_id=student.id,
        student_name=student.name,
        course_id=course.id,
        course_name=course.name,
        term_id=term_id,
        work_filter=work_filter,
        rows=list(rows.values()),
    )
