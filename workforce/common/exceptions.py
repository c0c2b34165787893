"""Custom exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

BASE_ERROR_URI = "https://workforce.local/errors"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → RFC 7807 JSON."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
        extensions: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        self.extensions = extensions
        super().__init__(detail)


class NotFoundException(AppException):
    """404 — entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ForbiddenException(AppException):
    """403 — insufficient permissions."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class ValidationException(AppException):
    """422 — business-logic validation failures."""

    def __init__(
        self,
        errors: dict[str, list[str]],
        *,
        extensions: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail="One or more fields failed validation.",
            errors=errors,
            extensions=extensions,
        )


class LeaveValidationError(ValidationException):
    """422 — a leave request broke one or more leave rules.

    Carries every violated rule (not just the first) plus the warnings the
    same validation pass produced.
    """

    def __init__(self, errors: list[str], warnings: Optional[list[str]] = None) -> None:
        self.rule_errors = list(errors)
        self.warnings = list(warnings or [])
        super().__init__(
            {"rules": self.rule_errors},
            extensions={"warnings": self.warnings},
        )


class ConflictError(AppException):
    """409 — the request collides with current state."""

    def __init__(
        self,
        detail: str,
        *,
        error_type: str = "conflict",
        title: str = "Conflict",
        errors: Optional[dict[str, Any]] = None,
        extensions: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            status_code=409,
            error_type=error_type,
            title=title,
            detail=detail,
            errors=errors,
            extensions=extensions,
        )


class TaskConflictError(ConflictError):
    """409 — requester has unfinished tasks inside the leave window."""

    def __init__(self, conflicting_tasks: list[dict[str, Any]]) -> None:
        self.conflicting_tasks = conflicting_tasks
        super().__init__(
            detail=(
                f"The requester has {len(conflicting_tasks)} task(s) scheduled "
                "during this leave. Reassign them before approving."
            ),
            error_type="task-conflict",
            title="Task Conflict",
            extensions={"conflicting_tasks": conflicting_tasks},
        )


class StaleStateError(ConflictError):
    """409 — the record was already moved on by another caller."""

    def __init__(self, entity_type: str, entity_id: Any, expected_status: str) -> None:
        self.expected_status = expected_status
        super().__init__(
            detail=(
                f"{entity_type} '{entity_id}' is no longer {expected_status}; "
                "it has already been processed."
            ),
            error_type="stale-state",
            title="Already Processed",
        )


class InvalidTransitionError(ConflictError):
    """409 — the lifecycle has no edge from the current to the target state."""

    def __init__(self, current: str, attempted: str) -> None:
        self.current = current
        self.attempted = attempted
        super().__init__(
            detail=f"Cannot move a leave request from '{current}' to '{attempted}'.",
            error_type="invalid-transition",
            title="Invalid Transition",
            errors={"status": [f"{current} -> {attempted} is not allowed."]},
        )


# ── RFC 7807 builder ────────────────────────────────────────────────

def _build_problem_detail(exc: AppException, request: Request) -> dict[str, Any]:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{exc.error_type}",
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": str(request.url.path),
    }
    if exc.errors:
        body["errors"] = exc.errors
    if exc.extensions:
        body.update(exc.extensions)
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_problem_detail(exc, request),
        media_type="application/problem+json",
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=422,
        content={
            "type": f"{BASE_ERROR_URI}/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "Request validation failed.",
            "instance": str(request.url.path),
            "errors": field_errors,
        },
        media_type="application/problem+json",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
