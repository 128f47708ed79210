# /app/core/errors.py

"""
Domain exceptions raised by the service layer.

Services never raise `HTTPException` themselves; the thin routers translate
these into status codes. Every class maps to exactly one HTTP status so that
a given failure looks the same no matter which endpoint surfaced it.
"""

from typing import List, Optional

from fastapi import HTTPException


class GradeDomainError(Exception):
    """Base class for every error the grade lifecycle can raise."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GradeDomainError, ValueError):
    """Input rejected before any write (bad marks, malformed ids, empty updates)."""

    status_code = 422


class AuthorizationError(GradeDomainError):
    """The caller's role or class ownership does not permit the operation."""

    status_code = 403


class NotFoundError(GradeDomainError):
    """A grade, class, student or term id does not resolve."""

    status_code = 404


class ConflictError(GradeDomainError):
    """
    An operation collides with existing state. Not fatal: the caller resolves
    it with an explicit follow-up decision (replace / retake / skip).
    """

    status_code = 409

    def __init__(self, message: str, existing_grade_ids: Optional[List[str]] = None):
        super().__init__(message)
        self.existing_grade_ids = existing_grade_ids or []


class NotHomeworkError(ConflictError):
    """Reassignment was attempted on a classwork grade."""


def to_http_exception(error: GradeDomainError) -> HTTPException:
    """The single translation point from domain errors to HTTP responses."""
    if isinstance(error, ConflictError):
        detail = {"message": error.message, "existing_grade_ids": error.existing_grade_ids}
        return HTTPException(status_code=error.status_code, detail=detail)
    return HTTPException(status_code=error.status_code, detail=error.message)
