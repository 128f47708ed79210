# /app/routers/progress_router.py

from typing import List

from fastapi import APIRouter, Depends, Query

from ..core.deps import AuthContext, get_auth_context
from ..core.errors import GradeDomainError, to_http_exception
from ..models import progress_model
from ..services import progress_service
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()


@router.get("/classes/{class_id}", response_model=List[progress_model.StudentProgressSummary], summary="Class Progress for a Term")
def get_class_progress(
    class_id: str,
    term_id: str = Query(...),
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    try:
        return progress_service.get_class_progress(class_id, term_id, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)


@router.get("/students/{student_id}", response_model=progress_model.StudentDetailProgress, summary="Student Progress by Topic")
def get_student_progress(
    student_id: str,
    term_id: str = Query(...),
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    try:
        return progress_service.get_student_detail_progress(student_id, term_id, db=db, auth=auth)
    except GradeDomainError as e:
        raise to_http_exception(e)


@router.get(
    "/classes/{class_id}/students/{student_id}/gradebook",
    response_model=progress_model.Gradebook,
    summary="Single-Student Gradebook",
)
def get_gradebook(
    class_id: str,
    student_id: str,
    term_id: str = Query(...),
    work_filter: progress_model.GradebookFilter = Query(progress_model.GradebookFilter.ALL),
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(get_auth_context),
):
    try:
        return progress_service.get_gradebook(
            class_id, student_id, term_id, db=db, auth=auth, work_filter=work_filter
        )
    except GradeDomainError as e:
        raise to_http_exception(e)
