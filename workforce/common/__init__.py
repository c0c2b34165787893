"""Common module — shared utilities for the workforce platform."""

from workforce.common.audit import AuditTrail, create_audit_entry
from workforce.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    TERMINAL_TASK_STATUSES,
    DurationType,
    HalfDayPeriod,
    LeaveCategory,
    LeaveStatus,
    NotificationType,
    PermissionScope,
    TaskStatus,
    UserRole,
)
from workforce.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    InvalidTransitionError,
    LeaveValidationError,
    NotFoundException,
    StaleStateError,
    TaskConflictError,
    ValidationException,
    register_exception_handlers,
)
from workforce.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "DurationType",
    "HalfDayPeriod",
    "LeaveCategory",
    "LeaveStatus",
    "NotificationType",
    "PermissionScope",
    "TaskStatus",
    "UserRole",
    "TERMINAL_TASK_STATUSES",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "InvalidTransitionError",
    "LeaveValidationError",
    "NotFoundException",
    "StaleStateError",
    "TaskConflictError",
    "ValidationException",
    "register_exception_handlers",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
