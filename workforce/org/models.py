"""Organisation ORM models: Department, SubUnit, Employee.

The leave engine only consumes this structure; it never changes it.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.constants import UserRole
from workforce.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ═════════════════════════════════════════════════════════════════════
# Department
# ═════════════════════════════════════════════════════════════════════


class Department(Base):
    """Top-level organisational unit (Finance, Sales, Tech...)."""

    __tablename__ = "departments"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(150), unique=True, nullable=False)
    code: Mapped[Optional[str]] = mapped_column(sa.String(20), unique=True)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    # ── Relationships ───────────────────────────────────────────────
    sub_units: Mapped[list[SubUnit]] = relationship(back_populates="department")

    def __repr__(self) -> str:
        return f"<Department {self.name!r} ({self.code})>"


# ═════════════════════════════════════════════════════════════════════
# SubUnit
# ═════════════════════════════════════════════════════════════════════


class SubUnit(Base):
    """Team inside a department; the SUBUNIT scope boundary."""

    __tablename__ = "sub_units"
    __table_args__ = (
        sa.UniqueConstraint("name", "department_id", name="uq_sub_unit_name_dept"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    department_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(as_uuid=True), sa.ForeignKey("departments.id"), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    department: Mapped[Department] = relationship(back_populates="sub_units")

    def __repr__(self) -> str:
        return f"<SubUnit {self.name!r}>"


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class Employee(Base):
    """Employee record — the leave profile the engine reads.

    ``created_at`` doubles as the stable tie-break when several employees
    hold the same approver role.
    """

    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_code: Mapped[str] = mapped_column(
        sa.String(20), unique=True, nullable=False,
    )
    full_name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(sa.String(255), unique=True)
    role: Mapped[UserRole] = mapped_column(
        sa.Enum(UserRole, name="user_role"), nullable=False,
    )

    # ── Organisation ────────────────────────────────────────────────
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid(as_uuid=True), sa.ForeignKey("departments.id"),
    )
    sub_unit_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid(as_uuid=True), sa.ForeignKey("sub_units.id"),
    )
    supervisor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid(as_uuid=True),
        sa.ForeignKey("employees.id", name="fk_employee_supervisor"),
    )

    # ── Leave profile ───────────────────────────────────────────────
    employment_start_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    birth_month: Mapped[Optional[int]] = mapped_column(sa.SmallInteger)

    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    # ── Relationships ───────────────────────────────────────────────
    department: Mapped[Optional[Department]] = relationship(
        foreign_keys=[department_id],
    )
    sub_unit: Mapped[Optional[SubUnit]] = relationship(
        foreign_keys=[sub_unit_id],
    )
    supervisor: Mapped[Optional[Employee]] = relationship(
        remote_side=[id], foreign_keys=[supervisor_id],
    )

    __table_args__ = (
        sa.CheckConstraint(
            "birth_month IS NULL OR (birth_month BETWEEN 1 AND 12)",
            name="ck_employee_birth_month",
        ),
        sa.Index("ix_employees_role_created", "role", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Employee {self.employee_code} {self.full_name!r}>"
