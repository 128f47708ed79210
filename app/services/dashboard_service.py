# /app/services/dashboard_service.py

"""
Builds the administrative and teacher dashboards.

The service resolves the term, fetches one snapshot with a handful of batched
queries and hands it to the pure functions in `dashboard_helpers.aggregations`.
Finished dashboards are kept in `dashboard_cache`; grade writes clear it.
"""

from typing import Optional

from ..core.deps import AuthContext
from ..core.logger import logger
from ..models import dashboard_model
from ..models.flag_model import FlagBreakdown
from .access_control import require_term
from .cache_service import dashboard_cache
from .database_service import DatabaseService
from .dashboard_helpers import aggregations
from .grade_helpers.frames import grades_to_frame

RECENT_ACTIVITY_LIMIT = 10


def _resolve_term(db: DatabaseService, term_id: Optional[str]):
    """An explicit term wins; otherwise the active term, else the most recently created one."""
    if term_id:
        return require_term(db, term_id)
    return db.get_active_term()


def _recent_activity(db: DatabaseService, grades):
    teacher_names = {t.id: t.full_name for t in db.get_teachers_by_ids({g.entered_by for g in grades})}
    student_names = {s.id: s.name for s in db.get_students_by_ids({g.student_id for g in grades})}
    class_names = {c.id: c.name for c in db.get_classes()}
    return [
        dashboard_model.RecentGradeActivity(**row)
        for row in aggregations.recent_activity(grades, teacher_names, student_names, class_names)
    ]


def _system_stats(db: DatabaseService, total_grades: int) -> dashboard_model.SystemStats:
    return dashboard_model.SystemStats(
        total_students=db.count_students(),
        total_teachers=db.count_teachers(),
        total_classes=db.count_classes(),
        total_courses=db.count_courses(),
        total_grades=total_grades,
    )


# --- Admin dashboard ---

def _build_admin_dashboard(term, db: DatabaseService) -> dashboard_model.AdminDashboard:
    grades_df = grades_to_frame(db.get_grades(term_id=term.id))
    all_grades_df = grades_to_frame(db.get_grades())
    classes = db.get_classes()

    breakdown = FlagBreakdown(**aggregations.flag_breakdown(grades_df))
    return dashboard_model.AdminDashboard(
        active_term=dashboard_model.TermInfo.model_validate(term),
        stats=_system_stats(db, total_grades=len(grades_df)),
        institute_performance=dashboard_model.InstitutePerformance(**aggregations.institute_performance(grades_df)),
        flag_breakdown=breakdown,
        flagged_count=breakdown.flagged_count,
        class_performance=[
            dashboard_model.ClassPerformance(**row)
            for row in aggregations.class_performance(grades_df, classes, db.get_enrollments())
        ],
        teacher_activity=[
            dashboard_model.TeacherActivity(**row)
            for row in aggregations.teacher_activity(grades_df, db.get_teachers(), classes)
        ],
        subject_flags=[
            dashboard_model.SubjectFlagTotal(**row)
            for row in aggregations.subject_flag_totals(grades_df, db.get_courses(), db.get_subjects())
        ],
        grade_distribution=dashboard_model.GradeDistribution(**aggregations.grade_distribution(grades_df)),
        trends=[dashboard_model.TrendPoint(**row) for row in aggregations.term_trends(all_grades_df, db.get_all_terms())],
        recent_activity=_recent_activity(db, db.get_recent_grades(limit=RECENT_ACTIVITY_LIMIT)),
    )


def get_admin_dashboard(db: DatabaseService, auth: AuthContext, term_id: Optional[str] = None) -> dashboard_model.AdminDashboard:
    """
    Institute-wide figures for one term. With no term at all the dashboard is
    returned empty with `no_active_term` set instead of failing.
    """
    term = _resolve_term(db, term_id)
    if term is None:
        logger.warning("[DASHBOARD] No terms exist; returning an empty admin dashboard")
        return dashboard_model.AdminDashboard(
            no_active_term=True,
            stats=_system_stats(db, total_grades=0),
            institute_performance=dashboard_model.InstitutePerformance(institute_average=0, low_point_percentage=0),
            flag_breakdown=FlagBreakdown(),
            flagged_count=0,
            grade_distribution=dashboard_model.GradeDistribution(),
        )
    return dashboard_cache.get_or_build(("admin", term.id), lambda: _build_admin_dashboard(term, db))


# --- Teacher dashboard ---

def _critical_students(grades_df, db: DatabaseService):
    rows = aggregations.critical_students(grades_df)
    names = {s.id: s.name for s in db.get_students_by_ids([r["student_id"] for r in rows])}
    return [
        dashboard_model.CriticalStudent(student_name=names.get(r["student_id"], r["student_id"]), **r)
        for r in rows
    ]


def _build_teacher_dashboard(term, db: DatabaseService, auth: AuthContext) -> dashboard_model.TeacherDashboard:
    classes = db.get_classes(teacher_id=auth.user_id)
    class_ids = [c.id for c in classes]
    enrollments = db.get_enrollments(class_ids=class_ids)
    grades_df = grades_to_frame(db.get_grades(term_id=term.id, class_ids=class_ids))

    breakdown = FlagBreakdown(**aggregations.flag_breakdown(grades_df))
    return dashboard_model.TeacherDashboard(
        active_term=dashboard_model.TermInfo.model_validate(term),
        class_count=len(class_ids),
        student_count=len({e.student_id for e in enrollments}),
        # Counted by author, so grades entered in a class since handed over still count.
        grades_entered=db.count_grades(term_id=term.id, entered_by=auth.user_id),
        flag_breakdown=breakdown,
        flagged_count=breakdown.flagged_count,
        class_performance=[
            dashboard_model.ClassPerformance(**row)
            for row in aggregations.class_performance(grades_df, classes, enrollments)
        ],
        critical_students=_critical_students(grades_df, db),
        recent_grades=_recent_activity(db, db.get_recent_grades(limit=RECENT_ACTIVITY_LIMIT, class_ids=class_ids)),
    )


def get_teacher_dashboard(db: DatabaseService, auth: AuthContext, term_id: Optional[str] = None) -> dashboard_model.TeacherDashboard:
    """The same figures as the admin view, limited to the caller's own classes."""
    term = _resolve_term(db, term_id)
    if term is None:
        return dashboard_model.TeacherDashboard(
            no_active_term=True,
            class_count=len(db.get_classes(teacher_id=auth.user_id)),
            student_count=0,
            grades_entered=0,
            flag_breakdown=FlagBreakdown(),
            flagged_count=0,
        )
    return dashboard_cache.get_or_build(
        (f"teacher:{auth.user_id}", term.id),
        lambda: _build_teacher_dashboard(term, db, auth),
    )
