# /app/core/deps.py

"""
Identity is issued elsewhere; this module only turns the identity headers set
by the upstream gateway into an explicit `AuthContext` that is passed into
every service call.
"""

from enum import Enum
from typing import List

from fastapi import Depends, Header, HTTPException, status
from pydantic import BaseModel

from app.core.logger import logger


class Role(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"


class AuthContext(BaseModel):
    """The authenticated caller, resolved once per request."""

    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def get_auth_context(
    x_user_id: str = Header(None),
    x_user_role: str = Header(None),
) -> AuthContext:
    if not x_user_id or not x_user_role:
        logger.warning("[AUTH] Request without identity headers")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing identity headers",
        )
    try:
        role = Role(x_user_role.lower())
    except ValueError:
        logger.warning(f"[AUTH] Unknown role '{x_user_role}' for user '{x_user_id}'")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Unknown role: {x_user_role}",
        )
    return AuthContext(user_id=x_user_id, role=role)


def require_roles(allowed_roles: List[Role]):
    """
    Dependency factory that only lets callers with one of `allowed_roles` through.
    """
    def role_checker(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if auth.role not in allowed_roles:
            logger.warning(
                f"[AUTH] Access denied for '{auth.user_id}' | "
                f"Role: {auth.role.value} | Required: {', '.join(r.value for r in allowed_roles)}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return auth

    return role_checker
