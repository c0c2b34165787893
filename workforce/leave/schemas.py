"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Request  → request bodies (write)
  - *Out / *Result      → response bodies (read)
  - *Brief              → compact embedded representations
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from workforce.common.constants import (
    DurationType,
    HalfDayPeriod,
    LeaveCategory,
    LeaveStatus,
    TaskStatus,
    UserRole,
)

CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# ═════════════════════════════════════════════════════════════════════
# Embedded / shared
# ═════════════════════════════════════════════════════════════════════


class EmployeeBrief(BaseModel):
    """Minimal employee info embedded in leave responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_code: str
    full_name: str
    role: UserRole


class TaskBrief(BaseModel):
    """A task that collides with a leave window."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    job_number: str
    title: str
    start_date: date
    end_date: date
    status: TaskStatus


# ═════════════════════════════════════════════════════════════════════
# Categories
# ═════════════════════════════════════════════════════════════════════


class CategoryOut(BaseModel):
    """Static configuration of one leave category."""

    category: LeaveCategory
    label: str
    quota_per_year: int
    allowed_duration_types: list[DurationType]
    calculated_by_tenure: bool
    is_birthday_gated: bool
    max_consecutive_days: Optional[int] = None
    min_days_notice: Optional[int] = None
    requires_documentation: bool


# ═════════════════════════════════════════════════════════════════════
# Balance
# ═════════════════════════════════════════════════════════════════════


class CategoryQuota(BaseModel):
    """Entitlement and consumption of one category for one year."""

    category: LeaveCategory
    total_quota: int
    used: Decimal = Decimal("0")
    pending: Decimal = Decimal("0")
    remaining: Decimal = Decimal("0")


class UserLeaveBalance(BaseModel):
    """Derived balance for an employee; never stored."""

    employee_id: uuid.UUID
    year: int
    employment_start_date: Optional[date] = None
    birth_month: Optional[int] = Field(None, ge=1, le=12)
    quotas: list[CategoryQuota]

    def for_category(self, category: LeaveCategory) -> CategoryQuota:
        for quota in self.quotas:
            if quota.category == category:
                return quota
        raise KeyError(category)


class CategorySummary(CategoryQuota):
    """Balance line enriched for display."""

    label: str
    allowed_duration_types: list[DurationType]
    note: Optional[str] = None


class LeaveQuotaSummary(BaseModel):
    employee_id: uuid.UUID
    year: int
    categories: list[CategorySummary]


# ═════════════════════════════════════════════════════════════════════
# Validation / conflicts
# ═════════════════════════════════════════════════════════════════════


class LeaveValidationResult(BaseModel):
    """Outcome of the rule check: every error and warning, never just the first."""

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class TaskConflictReport(BaseModel):
    has_conflicts: bool
    conflict_count: int = 0
    conflicting_tasks: list[TaskBrief] = Field(default_factory=list)


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Create / Preview
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for applying (or previewing) a leave request.

    Totals are always recomputed server-side; any client figure is ignored.
    """

    category: LeaveCategory
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    duration_type: DurationType = DurationType.full_day
    half_day_period: Optional[HalfDayPeriod] = None
    start_time: Optional[str] = Field(None, pattern=CLOCK_PATTERN, description="HH:MM")
    end_time: Optional[str] = Field(None, pattern=CLOCK_PATTERN, description="HH:MM")
    reason: Optional[str] = Field(None, max_length=1000)


class LeavePreviewOut(BaseModel):
    """Dry-run result: validation, computed totals, routing and conflicts."""

    validation: LeaveValidationResult
    total_minutes: int
    total_days: Decimal
    duration_display: str
    approver_id: Optional[uuid.UUID] = None
    requires_escalation: bool = False
    conflicts: TaskConflictReport


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Response
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Full leave request response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    category: LeaveCategory
    status: LeaveStatus
    start_date: date
    end_date: date
    duration_type: DurationType
    half_day_period: Optional[HalfDayPeriod] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    total_minutes: int
    total_days: Decimal
    reason: Optional[str] = None
    current_approver_id: Optional[uuid.UUID] = None
    approval_level: int = 1
    approver_id: Optional[uuid.UUID] = None
    approver_note: Optional[str] = None
    validation_warnings: list[str] = Field(default_factory=list)
    requires_escalation: bool = False
    decided_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    employee: Optional[EmployeeBrief] = None


class LeaveNotificationContext(BaseModel):
    """What a caller needs to tell people about a create/transition."""

    request_id: uuid.UUID
    requester_id: uuid.UUID
    requester_name: str
    category: LeaveCategory
    category_label: str
    approver_id: Optional[uuid.UUID] = None
    start_date: date
    end_date: date
    total_days: Decimal
    duration_display: str
    status: LeaveStatus
    previous_status: Optional[LeaveStatus] = None
    actor_id: uuid.UUID
    note: Optional[str] = None


class LeaveCreateResult(BaseModel):
    request: LeaveRequestOut
    warnings: list[str] = Field(default_factory=list)
    requires_escalation: bool = False
    notification: LeaveNotificationContext


class LeaveTransitionResult(BaseModel):
    request: LeaveRequestOut
    notification: LeaveNotificationContext


# ═════════════════════════════════════════════════════════════════════
# Leave Approve / Reject / Cancel
# ═════════════════════════════════════════════════════════════════════


class LeaveApproveRequest(BaseModel):
    """Payload for approving a leave request."""

    note: Optional[str] = Field(None, max_length=500)


class LeaveRejectRequest(BaseModel):
    """Payload for rejecting a leave request."""

    reason: Optional[str] = Field(None, max_length=500)


class LeaveCancelRequest(BaseModel):
    """Payload for cancelling a leave request."""

    reason: Optional[str] = Field(None, max_length=500)


# ═════════════════════════════════════════════════════════════════════
# Leave Request Filters
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestFilters(BaseModel):
    """Query filters for listing leave requests."""

    employee_id: Optional[uuid.UUID] = None
    status: Optional[LeaveStatus] = None
    category: Optional[LeaveCategory] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
