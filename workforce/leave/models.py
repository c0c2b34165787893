"""Leave ORM model: LeaveRequest.

Requests are never deleted; status only moves through the lifecycle in
``workforce.leave.state_machine``.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.audit import JSONType
from workforce.common.constants import (
    DurationType,
    HalfDayPeriod,
    LeaveCategory,
    LeaveStatus,
)
from workforce.database import Base
from workforce.org.models import Employee


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False
    )
    category: Mapped[LeaveCategory] = mapped_column(
        sa.Enum(LeaveCategory, name="leave_category"), nullable=False
    )
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status"),
        nullable=False,
        default=LeaveStatus.pending,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    duration_type: Mapped[DurationType] = mapped_column(
        sa.Enum(DurationType, name="leave_duration_type"), nullable=False
    )
    half_day_period: Mapped[Optional[HalfDayPeriod]] = mapped_column(
        sa.Enum(HalfDayPeriod, name="half_day_period")
    )
    start_time: Mapped[Optional[str]] = mapped_column(sa.String(5))
    end_time: Mapped[Optional[str]] = mapped_column(sa.String(5))
    total_minutes: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    total_days: Mapped[Decimal] = mapped_column(sa.Numeric(10, 6), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)

    # ── Approval routing ────────────────────────────────────────────
    current_approver_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid(as_uuid=True), sa.ForeignKey("employees.id")
    )
    approval_level: Mapped[int] = mapped_column(sa.SmallInteger, default=1)
    requires_escalation: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    approver_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid(as_uuid=True), sa.ForeignKey("employees.id")
    )
    approver_note: Mapped[Optional[str]] = mapped_column(sa.Text)
    validation_warnings: Mapped[list] = mapped_column(
        JSONType, nullable=False, default=list
    )

    decided_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    cancel_reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    employee: Mapped[Employee] = relationship(foreign_keys=[employee_id])
    current_approver: Mapped[Optional[Employee]] = relationship(
        foreign_keys=[current_approver_id]
    )

    __table_args__ = (
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_dates"),
        sa.Index("ix_leave_requests_employee_start", "employee_id", "start_date"),
        sa.Index("ix_leave_requests_approver_status", "current_approver_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<LeaveRequest {self.id} {self.category.value} {self.status.value}>"
