# /app/services/flag_service.py

"""
Read-side service for intervention flags and the parent-contact log.

Flags are never stored. They are derived on every read from the term's
low-point grades through `grade_helpers.flag_rules`, so an edited or deleted
grade is reflected immediately.
"""

from datetime import datetime, timezone
from typing import Dict, List

import pandas as pd

from ..core.deps import AuthContext
from ..core.errors import AuthorizationError
from ..core.logger import logger
from ..models import flag_model
from ..models.flag_model import CohortScope, ContactStatus
from .access_control import require_student_access, require_term, teacher_class_ids
from .database_service import DatabaseService
from .grade_helpers import flag_rules
from .grade_helpers.frames import grades_to_frame

INSTITUTE_COHORT_ID = "institute"


def flags_for(student_id: str, term_id: str, db: DatabaseService, auth: AuthContext) -> flag_model.StudentFlag:
    """Flag level of one student for one term, counting every low-point attempt."""
    require_student_access(db, student_id, auth)
    require_term(db, term_id)

    grades = db.get_grades(term_id=term_id, student_id=student_id)
    low_points = sum(1 for g in grades if g.is_low_point)
    level = flag_rules.flag_level_for(low_points)
    return flag_model.StudentFlag(
        student_id=student_id,
        term_id=term_id,
        low_point_count=low_points,
        flag_level=level,
        intervention=flag_rules.intervention_label(level),
    )


# --- Cohort breakdowns ---

def _cohort_names(scope: CohortScope, db: DatabaseService, class_ids) -> Dict[str, str]:
    if scope == CohortScope.CLASS:
        classes = db.get_classes() if class_ids is None else [c for c in db.get_classes() if c.id in class_ids]
        return {c.id: c.name for c in classes}
    if scope == CohortScope.TEACHER:
        return {t.id: t.full_name for t in db.get_teachers()}
    if scope == CohortScope.SUBJECT:
        return {s.id: s.name for s in db.get_subjects()}
    return {INSTITUTE_COHORT_ID: "Institute"}


def _assign_cohorts(grades_df: pd.DataFrame, scope: CohortScope, db: DatabaseService) -> pd.DataFrame:
    if scope == CohortScope.CLASS:
        grades_df["cohort_id"] = grades_df["class_id"]
    elif scope == CohortScope.TEACHER:
        class_teachers = {c.id: c.teacher_id for c in db.get_classes()}
        grades_df["cohort_id"] = grades_df["class_id"].map(class_teachers)
    elif scope == CohortScope.SUBJECT:
        course_subjects = {c.id: c.subject_id for c in db.get_courses()}
        grades_df["cohort_id"] = grades_df["course_id"].map(course_subjects)
    else:
        grades_df["cohort_id"] = INSTITUTE_COHORT_ID
    return grades_df.dropna(subset=["cohort_id"])


def get_cohort_breakdown(
    term_id: str,
    scope: CohortScope,
    db: DatabaseService,
    auth: AuthContext,
) -> List[flag_model.CohortFlagBreakdown]:
    """
    Students per flag level for every cohort of the given scope.

    The flag rule is applied per student within the cohort's grades and the
    resulting levels are tallied; low points are never summed across
    students. Only students with at least one grade in the cohort are counted.
    Teachers are limited to their own classes and cannot request the
    institute-wide view.
    """
    require_term(db, term_id)
    class_ids = teacher_class_ids(db, auth)
    if class_ids is not None and scope == CohortScope.INSTITUTE:
        raise AuthorizationError("Only admins can view the institute-wide flag breakdown.")

    grades_df = grades_to_frame(db.get_grades(term_id=term_id, class_ids=class_ids))
    if grades_df.empty:
        return []

    grades_df = _assign_cohorts(grades_df, scope, db)
    if grades_df.empty:
        return []
    names = _cohort_names(scope, db, class_ids)
    levels = flag_rules.flag_levels(grades_df, by=["cohort_id", "student_id"])

    breakdowns = []
    for cohort_id, cohort_levels in levels.groupby(level="cohort_id"):
        histogram = flag_model.FlagBreakdown(**flag_rules.flag_histogram(cohort_levels.tolist()))
        breakdowns.append(flag_model.CohortFlagBreakdown(
            cohort_id=cohort_id,
            cohort_name=names.get(cohort_id),
            breakdown=histogram,
            flagged_count=histogram.flagged_count,
        ))
    return sorted(breakdowns, key=lambda b: (-b.flagged_count, b.cohort_name or b.cohort_id))


# --- Flagged students & parent contacts ---

def get_flagged_students(term_id: str, db: DatabaseService, auth: AuthContext) -> List[flag_model.FlaggedStudent]:
    """
    Every student at flag level 1 or above for the term, most urgent first,
    with the parent contacts logged for them. Built from one grade query and
    one contact query.
    """
    require_term(db, term_id)
    class_ids = teacher_class_ids(db, auth)
    student_ids = None
    if class_ids is not None:
        student_ids = {e.student_id for e in db.get_enrollments(class_ids=class_ids)}

    grades_df = grades_to_frame(db.get_grades(term_id=term_id, student_ids=student_ids))
    if grades_df.empty:
        return []

    per_student = grades_df.groupby("student_id").agg(
        total_grades=("id", "count"),
        low_point_count=("is_low_point", "sum"),
        average_percentage=("percentage", "mean"),
    )
    class_ids_by_student = {sid: sorted(set(group)) for sid, group in grades_df.groupby("student_id")["class_id"]}
    per_student["flag_level"] = per_student["low_point_count"].astype(int).apply(flag_rules.flag_level_for)
    flagged = per_student[per_student["flag_level"] > 0]
    if flagged.empty:
        return []

    flagged_ids = flagged.index.tolist()
    students = {s.id: s for s in db.get_students_by_ids(flagged_ids)}
    contacts_by_student: Dict[str, List] = {}
    for contact in db.get_contacts(term_id, flagged_ids):
        contacts_by_student.setdefault(contact.student_id, []).append(contact)

    results = []
    for student_id, row in flagged.iterrows():
        student = students.get(student_id)
        contacts = [flag_model.ParentContact.model_validate(c) for c in contacts_by_student.get(student_id, [])]
        level = int(row["flag_level"])
        results.append(flag_model.FlaggedStudent(
            student_id=student_id,
            student_name=student.name if student else student_id,
            year_group=student.year_group if student else None,
            class_ids=class_ids_by_student[student_id],
            total_grades=int(row["total_grades"]),
            low_point_count=int(row["low_point_count"]),
            average_percentage=round(float(row["average_percentage"]), 1),
            flag_level=level,
            intervention=flag_rules.intervention_label(level),
            contacted=any(c.status in (ContactStatus.CONTACTED, ContactStatus.RESOLVED) for c in contacts),
            contacts=contacts,
        ))
    return sorted(results, key=lambda s: (-s.flag_level, -s.low_point_count, s.student_name))


def update_contact_status(update: flag_model.ContactStatusUpdate, db: DatabaseService, auth: AuthContext):
    """Records the state of one parent contact. There is one row per (student, term, contact type)."""
    require_student_access(db, update.student_id, auth)
    require_term(db, update.term_id)

    record = {
        "student_id": update.student_id,
        "term_id": update.term_id,
        "contact_type": update.contact_type.value,
        "status": update.status.value,
        "notes": update.notes,
    }
    if update.status == ContactStatus.CONTACTED:
        record["contacted_at"] = datetime.now(timezone.utc)
    elif update.status == ContactStatus.PENDING:
        record["contacted_at"] = None

    contact = db.upsert_contact(record)
    logger.info(
        f"[CONTACT] {update.contact_type.value} for student {update.student_id} in term {update.term_id} "
        f"marked {update.status.value} by {auth.user_id}"
    )
    return contact
