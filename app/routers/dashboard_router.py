# /app/routers/dashboard_router.py

# --- Core FastAPI Imports ---
from typing import Optional

from fastapi import APIRouter, Depends

# --- Service and Model Imports ---
from ..core.deps import AuthContext, Role, require_roles
from ..core.errors import GradeDomainError, to_http_exception
from ..models.dashboard_model import AdminDashboard, TeacherDashboard
from ..services import dashboard_service
from ..services.database_service import DatabaseService, get_db_service

# --- APIRouter Instance ---
router = APIRouter()


# --- Endpoint Definitions ---
@router.get(
    "/admin",
    response_model=AdminDashboard,
    summary="Get the Administrative Dashboard",
    description="Institute-wide figures for the active term, or for `term_id` when given.",
)
def get_admin_dashboard(
    term_id: Optional[str] = None,
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(require_roles([Role.ADMIN])),
):
    try:
        return dashboard_service.get_admin_dashboard(db=db, auth=auth, term_id=term_id)
    except GradeDomainError as e:
        raise to_http_exception(e)


@router.get(
    "/teacher",
    response_model=TeacherDashboard,
    summary="Get the Teacher Dashboard",
    description="The caller's own classes for the active term, or for `term_id` when given.",
)
def get_teacher_dashboard(
    term_id: Optional[str] = None,
    db: DatabaseService = Depends(get_db_service),
    auth: AuthContext = Depends(require_roles([Role.TEACHER])),
):
    try:
        return dashboard_service.get_teacher_dashboard(db=db, auth=auth, term_id=term_id)
    except GradeDomainError as e:
        raise to_http_exception(e)
