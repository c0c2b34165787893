"""SQLAlchemy-backed leave store.

Every write flushes an audit-trail entry in the same transaction. The
session's commit/rollback is owned by the caller (``get_db``).
"""

from __future__ import annotations

import uuid
from dataclasses import asdict
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Sequence

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.common.audit import create_audit_entry
from workforce.common.constants import LeaveStatus, PermissionScope, UserRole
from workforce.common.exceptions import StaleStateError
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate
from workforce.leave.approval import LeaveVisibility
from workforce.leave.models import LeaveRequest
from workforce.leave.ports import LeaveRequestDraft, LeaveRequestFilter
from workforce.leave.schemas import LeaveRequestFilters
from workforce.org.models import Employee

ENTITY_TYPE = "leave_request"

_AUDIT_ACTIONS = {
    LeaveStatus.approved: "approve",
    LeaveStatus.rejected: "reject",
    LeaveStatus.cancelled: "cancel",
}


def _jsonable(values: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, Enum):
            out[key] = value.value
        elif isinstance(value, (uuid.UUID, Decimal)):
            out[key] = str(value)
        elif isinstance(value, (date, datetime)):
            out[key] = value.isoformat()
        else:
            out[key] = value
    return out


class SqlLeaveStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Readers ─────────────────────────────────────────────────────

    async def find_leave_requests(self, flt: LeaveRequestFilter) -> Sequence[LeaveRequest]:
        stmt = select(LeaveRequest).where(LeaveRequest.employee_id == flt.employee_id)
        if flt.year_from is not None:
            stmt = stmt.where(LeaveRequest.start_date >= date(flt.year_from, 1, 1))
        if flt.year_to is not None:
            stmt = stmt.where(LeaveRequest.start_date <= date(flt.year_to, 12, 31))
        if flt.status_in:
            stmt = stmt.where(LeaveRequest.status.in_(flt.status_in))
        result = await self.session.execute(stmt.order_by(LeaveRequest.start_date))
        return result.scalars().all()

    async def find_leave_request(self, request_id: uuid.UUID) -> Optional[LeaveRequest]:
        result = await self.session.execute(
            select(LeaveRequest)
            .where(LeaveRequest.id == request_id)
            .options(selectinload(LeaveRequest.employee))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def find_employee(
        self, employee_id: uuid.UUID, *, lock: bool = False,
    ) -> Optional[Employee]:
        stmt = select(Employee).where(Employee.id == employee_id)
        if lock:
            # Serializes validate-then-insert per employee. No-op on SQLite.
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def find_employees_by_role(
        self, role: UserRole, *, active_only: bool = True,
    ) -> Sequence[Employee]:
        stmt = select(Employee).where(Employee.role == role)
        if active_only:
            stmt = stmt.where(Employee.is_active.is_(True))
        result = await self.session.execute(
            stmt.order_by(Employee.created_at, Employee.id)
        )
        return result.scalars().all()

    # ── Writers ─────────────────────────────────────────────────────

    async def create_leave_request(
        self, draft: LeaveRequestDraft, *, actor_id: uuid.UUID,
    ) -> LeaveRequest:
        leave = LeaveRequest(**asdict(draft), status=LeaveStatus.pending)
        self.session.add(leave)
        await self.session.flush()

        await create_audit_entry(
            self.session,
            action="create",
            entity_type=ENTITY_TYPE,
            entity_id=leave.id,
            actor_id=actor_id,
            new_values=_jsonable({"status": LeaveStatus.pending, **asdict(draft)}),
        )
        return await self.find_leave_request(leave.id)

    async def transition_leave_request(
        self,
        request_id: uuid.UUID,
        from_status: LeaveStatus,
        to_status: LeaveStatus,
        fields: dict[str, Any],
        *,
        actor_id: uuid.UUID,
    ) -> LeaveRequest:
        # Compare-and-swap on status: exactly one concurrent caller wins.
        result = await self.session.execute(
            update(LeaveRequest)
            .where(LeaveRequest.id == request_id, LeaveRequest.status == from_status)
            .values(status=to_status, updated_at=datetime.now(timezone.utc), **fields)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise StaleStateError("LeaveRequest", request_id, from_status.value)

        await create_audit_entry(
            self.session,
            action=_AUDIT_ACTIONS.get(to_status, to_status.value),
            entity_type=ENTITY_TYPE,
            entity_id=request_id,
            actor_id=actor_id,
            old_values={"status": from_status.value},
            new_values=_jsonable({"status": to_status, **fields}),
        )
        return await self.find_leave_request(request_id)

    # ── Listing ─────────────────────────────────────────────────────

    async def list_leave_requests(
        self,
        visibility: LeaveVisibility,
        filters: LeaveRequestFilters,
        params: PaginationParams,
    ) -> PaginatedResponse:
        query = (
            select(LeaveRequest)
            .join(Employee, LeaveRequest.employee_id == Employee.id)
            .options(selectinload(LeaveRequest.employee))
        )

        own = LeaveRequest.employee_id == visibility.viewer_id
        if visibility.scope == PermissionScope.subunit and visibility.sub_unit_id:
            query = query.where(or_(own, Employee.sub_unit_id == visibility.sub_unit_id))
        elif visibility.scope == PermissionScope.department and visibility.department_id:
            query = query.where(or_(own, Employee.department_id == visibility.department_id))
        elif visibility.scope != PermissionScope.all:
            query = query.where(own)

        if filters.employee_id:
            query = query.where(LeaveRequest.employee_id == filters.employee_id)
        if filters.status:
            query = query.where(LeaveRequest.status == filters.status)
        if filters.category:
            query = query.where(LeaveRequest.category == filters.category)
        if filters.from_date:
            query = query.where(LeaveRequest.end_date >= filters.from_date)
        if filters.to_date:
            query = query.where(LeaveRequest.start_date <= filters.to_date)

        query = query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id)
        return await paginate(self.session, query, params)

    async def list_pending_for_approver(
        self, approver_id: uuid.UUID, params: PaginationParams,
    ) -> PaginatedResponse:
        query = (
            select(LeaveRequest)
            .where(
                LeaveRequest.current_approver_id == approver_id,
                LeaveRequest.status == LeaveStatus.pending,
            )
            .options(selectinload(LeaveRequest.employee))
            .order_by(LeaveRequest.start_date, LeaveRequest.created_at)
        )
        return await paginate(self.session, query, params)
