# /app/routers/flags_router.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..core.deps import AuthContext, Role, get_auth_context, require_roles
from ..core.errors import GradeDomainError, to_http_exception
from ..core.logger import logger
from ..models import flag_model
from ..models.flag_model import CohortScope
from ..services import flag_service
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()


@router.get("", response_model=List[flag_model.FlaggedStudent], summary="List Flagged Students for a Term")
def get_flagged_students(
    term_id: str = Query(...),
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    try:
        return flag_service.get_flagged_students(term_id, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)


@router.get("/breakdown", response_model=List[flag_model.CohortFlagBreakdown], summary="Flag Levels per Cohort")
def get_cohort_breakdown(
    term_id: str = Query(...),
    scope: CohortScope = CohortScope.CLASS,
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    try:
        return flag_service.get_cohort_breakdown(term_id, scope, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)


@router.get("/students/{student_id}", response_model=flag_model.StudentFlag, summary="Get One Student's Flag")
def get_student_flag(
    student_id: str,
    term_id: str = Query(...),
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    try:
        return flag_service.flags_for(student_id, term_id, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)


@router.put("/contacts", response_model=flag_model.ParentContact, summary="Record a Parent Contact")
def update_contact_status(
    update: flag_model.ContactStatusUpdate,
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(require_roles([Role.ADMIN, Role.TEACHER])),
):
    try:
        return flag_service.update_contact_status(update, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"[CONTACT] Failed to save contact for student {update.student_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected server error occurred while saving the contact.",
        )
