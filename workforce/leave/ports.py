"""Collaborator contracts the leave service depends on.

``SqlLeaveStore`` and ``SqlTaskSource`` are the production implementations;
tests may supply anything with the same shape.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Protocol, Sequence

from workforce.common.constants import (
    DurationType,
    HalfDayPeriod,
    LeaveCategory,
    LeaveStatus,
    TaskStatus,
    UserRole,
)
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.leave.approval import LeaveVisibility
from workforce.leave.schemas import LeaveRequestFilters


@dataclass(frozen=True)
class LeaveRequestFilter:
    """Reader-side filter used for balance derivation."""

    employee_id: uuid.UUID
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    status_in: tuple[LeaveStatus, ...] = ()


@dataclass
class LeaveRequestDraft:
    """A fully computed request ready to be inserted as PENDING."""

    employee_id: uuid.UUID
    category: LeaveCategory
    start_date: date
    end_date: date
    duration_type: DurationType
    total_minutes: int
    total_days: Decimal
    half_day_period: Optional[HalfDayPeriod] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None
    current_approver_id: Optional[uuid.UUID] = None
    approval_level: int = 1
    validation_warnings: list[str] = field(default_factory=list)
    requires_escalation: bool = False


class EmployeeRecord(Protocol):
    id: uuid.UUID
    full_name: str
    role: UserRole
    department_id: Optional[uuid.UUID]
    sub_unit_id: Optional[uuid.UUID]
    supervisor_id: Optional[uuid.UUID]
    employment_start_date: Optional[date]
    birth_month: Optional[int]
    is_active: bool
    created_at: datetime


class LeaveRecord(Protocol):
    id: uuid.UUID
    employee_id: uuid.UUID
    category: LeaveCategory
    status: LeaveStatus
    start_date: date
    end_date: date
    total_days: Decimal
    current_approver_id: Optional[uuid.UUID]


class TaskRecord(Protocol):
    id: uuid.UUID
    job_number: str
    title: str
    start_date: date
    end_date: date
    status: TaskStatus


class LeaveStore(Protocol):
    async def find_leave_requests(self, flt: LeaveRequestFilter) -> Sequence[LeaveRecord]: ...

    async def find_leave_request(self, request_id: uuid.UUID) -> Optional[Any]: ...

    async def find_employee(
        self, employee_id: uuid.UUID, *, lock: bool = False,
    ) -> Optional[EmployeeRecord]: ...

    async def find_employees_by_role(
        self, role: UserRole, *, active_only: bool = True,
    ) -> Sequence[EmployeeRecord]: ...

    async def create_leave_request(
        self, draft: LeaveRequestDraft, *, actor_id: uuid.UUID,
    ) -> Any: ...

    async def transition_leave_request(
        self,
        request_id: uuid.UUID,
        from_status: LeaveStatus,
        to_status: LeaveStatus,
        fields: dict[str, Any],
        *,
        actor_id: uuid.UUID,
    ) -> Any:
        """Conditional on *from_status*; raises ``StaleStateError`` when it no longer holds."""
        ...

    async def list_leave_requests(
        self,
        visibility: LeaveVisibility,
        filters: LeaveRequestFilters,
        params: PaginationParams,
    ) -> PaginatedResponse: ...

    async def list_pending_for_approver(
        self, approver_id: uuid.UUID, params: PaginationParams,
    ) -> PaginatedResponse: ...


class TaskSource(Protocol):
    async def find_overlapping_tasks(
        self, employee_id: uuid.UUID, start: date, end: date,
    ) -> Sequence[TaskRecord]: ...
