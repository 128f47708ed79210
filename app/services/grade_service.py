# /app/services/grade_service.py

"""
This service module is the business logic layer for the grade lifecycle:
individual and batch entry, retakes, inline edits, deletion and homework
reassignment.

It orchestrates the pure specialists in `grade_helpers` (classification,
attempt versioning, reassignment) and the `DatabaseService`. Every function
takes an explicit `AuthContext`; ownership is checked here, once, before
anything is written.
"""

import uuid
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..core.deps import AuthContext
from ..core.errors import ConflictError, ValidationError
from ..core.logger import logger
from ..models import grade_model
from ..models.grade_model import ConflictResolution, SubmissionOutcome, WorkType
from .access_control import (
    require_class_access,
    require_curriculum,
    require_enrollment,
    require_grade,
    require_grade_write_access,
    require_term,
    teacher_class_ids,
)
from .cache_service import dashboard_cache
from .database_service import DatabaseService
from .grade_helpers import attempt_versioning, reassignment, score_classifier
from .grade_helpers.attempt_versioning import DecisionKind


def _new_grade_id() -> str:
    return f"grd_{uuid.uuid4().hex[:12]}"


# --- Record assembly ---

def _homework_flag(work_type: str, homework_submitted: Optional[bool]) -> Optional[bool]:
    return homework_submitted if work_type == WorkType.HOMEWORK.value else None


def _build_grade_record(fields: Dict, auth: AuthContext, decision) -> Dict:
    classification = score_classifier.classify_score(fields["marks_obtained"], fields["total_marks"])
    work_type = WorkType(fields["work_type"]).value
    return {
        "id": _new_grade_id(),
        "student_id": fields["student_id"],
        "class_id": fields["class_id"],
        "course_id": fields["course_id"],
        "term_id": fields["term_id"],
        "topic_id": fields["topic_id"],
        "subtopic_id": fields.get("subtopic_id") or None,
        "work_type": work_type,
        "work_subtype": grade_model.WorkSubtype(fields["work_subtype"]).value,
        "marks_obtained": fields["marks_obtained"],
        "total_marks": fields["total_marks"],
        "percentage": classification.percentage,
        "is_low_point": classification.is_low_point,
        "attempt_number": decision.attempt_number,
        "is_retake": decision.is_retake,
        "is_reassigned": False,
        "original_grade_id": decision.original_grade_id,
        "assessed_date": fields["assessed_date"],
        "notes": fields.get("notes"),
        "homework_submitted": _homework_flag(work_type, fields.get("homework_submitted")),
        "entered_by": auth.user_id,
    }


def _key_of(fields: Dict):
    return (
        fields["student_id"], fields["class_id"], fields["term_id"],
        fields["topic_id"], fields.get("subtopic_id") or None,
    )


# --- Submission (individual and batch) ---

def _submit_for_key(
    fields: Dict,
    resolution: Optional[ConflictResolution],
    db: DatabaseService,
    auth: AuthContext,
) -> grade_model.GradeSubmissionResult:
    """
    Runs the versioning decision for one student and applies it. An integrity
    error with an active record now on the key means another session wrote it
    first; that is reported as a conflict so the teacher decides again with the
    fresh state. Any other integrity error is a bad reference and is raised as
    a `ValidationError`.
    """
    key = _key_of(fields)
    key_grades = db.get_grades_for_key(*key)
    decision = attempt_versioning.decide(key_grades, resolution)

    if decision.kind == DecisionKind.CONFLICT:
        return grade_model.GradeSubmissionResult(
            outcome=SubmissionOutcome.CONFLICTED,
            existing_grades=[grade_model.Grade.model_validate(g) for g in decision.existing],
            message="A grade already exists for this topic. Choose replace, retake or skip.",
        )
    if decision.kind == DecisionKind.SKIP_DUPLICATE:
        return grade_model.GradeSubmissionResult(
            outcome=SubmissionOutcome.SKIPPED,
            existing_grades=[grade_model.Grade.model_validate(g) for g in decision.existing],
        )

    record = _build_grade_record(fields, auth, decision)
    try:
        if decision.kind == DecisionKind.REPLACE_ACTIVE:
            new_grade = db.replace_grades(decision.grade_ids_to_delete, record)
            outcome = SubmissionOutcome.REPLACED
        else:
            new_grade = db.add_grade(record)
            outcome = SubmissionOutcome.RETAKEN if decision.kind == DecisionKind.APPEND_RETAKE else SubmissionOutcome.CREATED
    except IntegrityError as e:
        fresh = attempt_versioning.active_set(db.get_grades_for_key(*key))
        if not fresh:
            logger.error(f"[GRADE SUBMIT] Integrity error for key {key} with no active grade: {e.orig}")
            raise ValidationError("The grade references a record that does not exist.") from e
        logger.warning(f"[GRADE SUBMIT] Concurrent write detected for key {key}; asking for a new decision")
        return grade_model.GradeSubmissionResult(
            outcome=SubmissionOutcome.CONFLICTED,
            existing_grades=[grade_model.Grade.model_validate(g) for g in fresh],
            message="The grade was changed by another session. Choose replace, retake or skip again.",
        )

    dashboard_cache.invalidate()
    logger.info(
        f"[GRADE SUBMIT] {outcome.value} grade {new_grade.id} for student {new_grade.student_id} "
        f"(attempt {new_grade.attempt_number}, {new_grade.percentage}%)"
    )
    return grade_model.GradeSubmissionResult(outcome=outcome, grade=grade_model.Grade.model_validate(new_grade))


def submit_grade(
    submission: grade_model.GradeSubmission,
    db: DatabaseService,
    auth: AuthContext,
) -> grade_model.GradeSubmissionResult:
    """Individual entry for one student."""
    score_classifier.validate_marks(submission.marks_obtained, submission.total_marks)
    require_class_access(db, submission.class_id, auth, write=True)
    require_term(db, submission.term_id)
    require_curriculum(db, submission.course_id, submission.topic_id, submission.subtopic_id)
    require_enrollment(db, submission.class_id, submission.student_id, course_id=submission.course_id)

    fields = submission.model_dump(exclude={"resolution"})
    return _submit_for_key(fields, submission.resolution, db, auth)


def submit_batch(
    batch: grade_model.BatchGradeSubmission,
    db: DatabaseService,
    auth: AuthContext,
) -> grade_model.BatchSubmissionResult:
    """
    Batch entry for one assessment across many students, processed in order.

    Every entry is validated before anything is written. While writing, the
    first student whose entry cannot be committed (an unresolved conflict or a
    storage failure) stops the batch: later students are reported as deferred
    and left for the teacher to resubmit. Writes already committed stay.
    """
    for entry in batch.entries:
        try:
            score_classifier.validate_marks(entry.marks_obtained, batch.total_marks)
        except ValidationError as e:
            raise ValidationError(f"Student {entry.student_id}: {e.message}")
    require_class_access(db, batch.class_id, auth, write=True)
    require_term(db, batch.term_id)
    for entry in batch.entries:
        try:
            require_curriculum(db, entry.course_id, batch.topic_id, batch.subtopic_id)
            require_enrollment(db, batch.class_id, entry.student_id, course_id=entry.course_id)
        except ValidationError as e:
            raise ValidationError(f"Student {entry.student_id}: {e.message}")

    shared = batch.model_dump(exclude={"entries"})
    results: List[grade_model.BatchEntryResult] = []
    summary = grade_model.BatchSummary()
    awaiting: Optional[str] = None

    for index, entry in enumerate(batch.entries):
        fields = {**shared, **entry.model_dump(exclude={"resolution"})}
        try:
            outcome = _submit_for_key(fields, entry.resolution, db, auth)
        except (SQLAlchemyError, ValidationError) as e:
            logger.error(f"[BATCH SUBMIT] Failed to save grade for student {entry.student_id}: {e}")
            results.append(grade_model.BatchEntryResult(
                student_id=entry.student_id, outcome=SubmissionOutcome.FAILED, error=str(e)
            ))
            summary.failed += 1
        else:
            results.append(grade_model.BatchEntryResult(
                student_id=entry.student_id,
                outcome=outcome.outcome,
                grade_id=outcome.grade.id if outcome.grade else None,
                existing_grade_ids=[g.id for g in outcome.existing_grades],
                error=outcome.message if outcome.outcome == SubmissionOutcome.CONFLICTED else None,
            ))
            setattr(summary, outcome.outcome.value, getattr(summary, outcome.outcome.value) + 1)
            if outcome.outcome != SubmissionOutcome.CONFLICTED:
                continue

        awaiting = entry.student_id
        for deferred in batch.entries[index + 1:]:
            results.append(grade_model.BatchEntryResult(
                student_id=deferred.student_id, outcome=SubmissionOutcome.DEFERRED
            ))
            summary.deferred += 1
        break

    logger.info(
        f"[BATCH SUBMIT] class {batch.class_id}: {summary.created} created, {summary.replaced} replaced, "
        f"{summary.retaken} retaken, {summary.skipped} skipped, {summary.conflicted} conflicted, "
        f"{summary.deferred} deferred, {summary.failed} failed"
    )
    return grade_model.BatchSubmissionResult(results=results, summary=summary, awaiting_resolution_for=awaiting)


# --- Gradebook transitions ---

def add_retake(
    original_grade_id: str,
    retake: grade_model.RetakeCreate,
    db: DatabaseService,
    auth: AuthContext,
):
    """Appends a new attempt to the key of an existing grade, keeping its history."""
    original = require_grade(db, original_grade_id)
    require_class_access(db, original.class_id, auth, write=True)
    if original.is_reassigned:
        raise ConflictError(
            "This grade was reassigned; record the retake against its successor.",
            existing_grade_ids=[original.id],
        )
    score_classifier.validate_marks(retake.marks_obtained, retake.total_marks)

    key_grades = db.get_grades_for_key(
        original.student_id, original.class_id, original.term_id, original.topic_id, original.subtopic_id
    )
    decision = attempt_versioning.VersioningDecision(
        kind=DecisionKind.APPEND_RETAKE,
        attempt_number=attempt_versioning.next_attempt_number(key_grades),
        is_retake=True,
        original_grade_id=original.id,
    )
    fields = {
        "student_id": original.student_id,
        "class_id": original.class_id,
        "course_id": original.course_id,
        "term_id": original.term_id,
        "topic_id": original.topic_id,
        "subtopic_id": original.subtopic_id,
        "work_type": retake.work_type or original.work_type,
        "work_subtype": retake.work_subtype or original.work_subtype,
        "marks_obtained": retake.marks_obtained,
        "total_marks": retake.total_marks,
        "assessed_date": retake.assessed_date,
        "notes": retake.notes,
        "homework_submitted": original.homework_submitted,
    }
    try:
        new_grade = db.add_grade(_build_grade_record(fields, auth, decision))
    except IntegrityError as e:
        raise ConflictError("Failed to create retake.", existing_grade_ids=[g.id for g in key_grades]) from e

    dashboard_cache.invalidate()
    logger.info(f"[RETAKE] Grade {new_grade.id} is attempt {new_grade.attempt_number} of {original.id}")
    return new_grade


def update_grade(
    grade_id: str,
    grade_update: grade_model.GradeUpdate,
    db: DatabaseService,
    auth: AuthContext,
):
    """Inline edit. Re-derives percentage and low-point status; lineage is untouched."""
    grade = require_grade(db, grade_id)
    require_grade_write_access(db, grade, auth)
    if grade.is_reassigned:
        raise ConflictError("A reassigned grade is closed and cannot be edited.", existing_grade_ids=[grade.id])

    update_data = grade_update.model_dump(exclude_unset=True)
    if not update_data:
        raise ValidationError("No update data provided.")
    for field_name in ("work_type", "work_subtype"):
        if update_data.get(field_name) is not None:
            update_data[field_name] = update_data[field_name].value

    marks = update_data.get("marks_obtained", grade.marks_obtained)
    total = update_data.get("total_marks", grade.total_marks)
    score_classifier.validate_marks(marks, total)
    classification = score_classifier.classify_score(marks, total)
    update_data["percentage"] = classification.percentage
    update_data["is_low_point"] = classification.is_low_point

    work_type = update_data.get("work_type") or grade.work_type
    update_data["homework_submitted"] = _homework_flag(
        work_type, update_data.get("homework_submitted", grade.homework_submitted)
    )

    updated = db.update_grade(grade, update_data)
    dashboard_cache.invalidate()
    logger.info(f"[GRADE UPDATE] Grade {grade_id} now {updated.percentage}%")
    return updated


def delete_grade(grade_id: str, db: DatabaseService, auth: AuthContext) -> bool:
    """Hard delete. Grades that pointed at this one keep existing with a null back-reference."""
    grade = require_grade(db, grade_id)
    require_grade_write_access(db, grade, auth)
    was_deleted = db.delete_grade(grade_id)
    if was_deleted:
        dashboard_cache.invalidate()
        logger.info(f"[GRADE DELETE] Grade {grade_id} deleted by {auth.user_id}")
    return was_deleted


def reassign_homework(
    grade_id: str,
    request: grade_model.ReassignRequest,
    db: DatabaseService,
    auth: AuthContext,
):
    """Closes a homework grade and opens an empty successor due on the new deadline."""
    target = require_grade(db, grade_id)
    require_class_access(db, target.class_id, auth, write=True)
    reassignment.ensure_reassignable(target)

    key_grades = db.get_grades_for_key(
        target.student_id, target.class_id, target.term_id, target.topic_id, target.subtopic_id
    )
    successor_record = reassignment.build_successor_record(
        target,
        new_deadline=request.new_deadline,
        key_grades=key_grades,
        grade_id=_new_grade_id(),
        entered_by=auth.user_id,
        notes=request.notes,
    )
    try:
        successor = db.reassign_grade(target, successor_record)
    except IntegrityError as e:
        raise ConflictError(
            "Another active grade exists for this topic; resolve it before reassigning.",
            existing_grade_ids=[g.id for g in key_grades],
        ) from e

    dashboard_cache.invalidate()
    logger.info(f"[REASSIGN] Homework {grade_id} reassigned as {successor.id} due {request.new_deadline}")
    return successor


# --- Reads ---

def get_grade(grade_id: str, db: DatabaseService, auth: AuthContext):
    grade = require_grade(db, grade_id)
    require_class_access(db, grade.class_id, auth)
    return grade


def list_grades(filters: grade_model.GradeFilters, db: DatabaseService, auth: AuthContext) -> List:
    """Grade report query. Teachers only ever see grades from their own classes."""
    class_ids = None
    if filters.class_id:
        require_class_access(db, filters.class_id, auth)
    else:
        class_ids = teacher_class_ids(db, auth)

    query = filters.model_dump()
    for field_name in ("work_type", "work_subtype"):
        if query[field_name] is not None:
            query[field_name] = query[field_name].value
    return db.get_grades(**query, class_ids=class_ids)


def get_grade_history(
    class_id: str,
    student_id: str,
    term_id: str,
    topic_id: str,
    subtopic_id: Optional[str],
    db: DatabaseService,
    auth: AuthContext,
) -> List:
    """Every attempt for one key in assessment order, for the trend view."""
    require_class_access(db, class_id, auth)
    return db.get_grade_history(student_id, class_id, term_id, topic_id, subtopic_id)
