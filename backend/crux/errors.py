# crux/errors.py
"""
Domain errors for scheduling and workout execution.

Services raise these; ``register_exception_handlers`` turns them into the
same ``{"detail": ...}`` body FastAPI uses for HTTPException, plus a stable
``code`` the client can switch on.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

log = logging.getLogger(__name__)


class CruxError(Exception):
    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthorized(CruxError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(CruxError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class NotFound(CruxError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ImmutableState(CruxError):
    """Editing a completed/canceled/past session or appending to a sealed log."""
    code = "IMMUTABLE_STATE"
    status_code = status.HTTP_409_CONFLICT


class InvalidRecurrence(CruxError):
    code = "INVALID_RECURRENCE"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class SchedulingPolicyViolation(CruxError):
    code = "SCHEDULING_POLICY_VIOLATION"
    status_code = status.HTTP_403_FORBIDDEN


class ScheduleConflict(CruxError):
    code = "SCHEDULE_CONFLICT"
    status_code = status.HTTP_409_CONFLICT


def assert_owner(owner_id: int, current_user_id: int) -> None:
    if owner_id != current_user_id:
        raise Forbidden()


async def crux_error_handler(request: Request, exc: CruxError) -> JSONResponse:
    log.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.code, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CruxError, crux_error_handler)
