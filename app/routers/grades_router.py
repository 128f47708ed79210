# /app/routers/grades_router.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ..core.deps import AuthContext, get_auth_context
from ..core.errors import GradeDomainError, to_http_exception
from ..core.logger import logger
from ..models import grade_model
from ..models.grade_model import SubmissionOutcome, WorkSubtype, WorkType
from ..services import grade_service
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()


def _unexpected(action: str, e: Exception) -> HTTPException:
    logger.exception(f"[GRADES] Unexpected error while {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"An unexpected server error occurred while {action}.",
    )


# --- GRADE COLLECTION ENDPOINTS (/api/grades) ---

@router.post("", response_model=grade_model.GradeSubmissionResult, status_code=status.HTTP_201_CREATED, summary="Enter a Grade for One Student")
def submit_grade(
    submission: grade_model.GradeSubmission,
    response: Response,
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    Records one grade. If the topic already has an active grade and no
    `resolution` was sent, nothing is written and the existing grades are
    returned with HTTP 409 so the teacher can choose replace, retake or skip.
    """
    try:
        result = grade_service.submit_grade(submission, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise _unexpected("saving the grade", e)

    if result.outcome == SubmissionOutcome.CONFLICTED:
        response.status_code = status.HTTP_409_CONFLICT
    elif result.outcome == SubmissionOutcome.SKIPPED:
        response.status_code = status.HTTP_200_OK
    return result


@router.post("/batch", response_model=grade_model.BatchSubmissionResult, summary="Enter Grades for a Whole Class")
def submit_batch(
    batch: grade_model.BatchGradeSubmission,
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    """Per-student outcomes are always reported in the body; a stopped batch is not an HTTP error."""
    try:
        return grade_service.submit_batch(batch, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise _unexpected("saving the batch", e)


@router.get("", response_model=List[grade_model.Grade], summary="Query the Grade Report")
def list_grades(
    term_id: Optional[str] = None,
    class_id: Optional[str] = None,
    course_id: Optional[str] = None,
    student_id: Optional[str] = None,
    work_type: Optional[WorkType] = None,
    work_subtype: Optional[WorkSubtype] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    filters = grade_model.GradeFilters(
        term_id=term_id, class_id=class_id, course_id=course_id, student_id=student_id,
        work_type=work_type, work_subtype=work_subtype, start_date=start_date, end_date=end_date,
    )
    try:
        return grade_service.list_grades(filters, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)


@router.get("/history", response_model=List[grade_model.Grade], summary="Get Every Attempt for One Topic")
def get_grade_history(
    class_id: str = Query(...),
    student_id: str = Query(...),
    term_id: str = Query(...),
    topic_id: str = Query(...),
    subtopic_id: Optional[str] = None,
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    try:
        return grade_service.get_grade_history(class_id, student_id, term_id, topic_id, subtopic_id, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)


# --- INDIVIDUAL GRADE ENDPOINTS (/api/grades/{grade_id}) ---

@router.get("/{grade_id}", response_model=grade_model.Grade, summary="Get a Single Grade")
def get_grade(
    grade_id: str,
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    try:
        return grade_service.get_grade(grade_id, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)


@router.patch("/{grade_id}", response_model=grade_model.Grade, summary="Edit a Grade Inline")
def update_grade(
    grade_id: str,
    grade_update: grade_model.GradeUpdate,
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    try:
        return grade_service.update_grade(grade_id, grade_update, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise _unexpected(f"updating grade {grade_id}", e)


@router.delete("/{grade_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a Grade")
def delete_grade(
    grade_id: str,
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    try:
        was_deleted = grade_service.delete_grade(grade_id, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)
    if not was_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Grade with ID {grade_id} not found.")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{grade_id}/retake", response_model=grade_model.Grade, status_code=status.HTTP_201_CREATED, summary="Record a Retake")
def add_retake(
    grade_id: str,
    retake: grade_model.RetakeCreate,
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    try:
        return grade_service.add_retake(grade_id, retake, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise _unexpected(f"recording a retake of {grade_id}", e)


@router.post("/{grade_id}/reassign", response_model=grade_model.Grade, status_code=status.HTTP_201_CREATED, summary="Reassign a Homework Grade")
def reassign_homework(
    grade_id: str,
    reassign_request: grade_model.ReassignRequest,
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    """Closes the homework grade and returns its successor, due on the new deadline."""
    try:
        return grade_service.reassign_homework(grade_id, reassign_request, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise _unexpected(f"reassigning {grade_id}", e)
