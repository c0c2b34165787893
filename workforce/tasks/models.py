"""Task ORM models: Task, TaskAssignment.

Tasks are produced elsewhere (manual entry, the recurring generator); the
leave engine only reads them to find scheduling conflicts.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.constants import TaskStatus
from workforce.database import Base


class Task(Base):
    """A unit of scheduled work spanning one or more calendar days."""

    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    job_number: Mapped[str] = mapped_column(sa.String(50), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    status: Mapped[TaskStatus] = mapped_column(
        sa.Enum(TaskStatus, name="task_status"),
        nullable=False,
        default=TaskStatus.waiting,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    assignments: Mapped[list[TaskAssignment]] = relationship(
        back_populates="task", cascade="all, delete-orphan",
    )

    __table_args__ = (
        sa.CheckConstraint("end_date >= start_date", name="ck_task_dates"),
        sa.Index("ix_tasks_dates", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return f"<Task {self.job_number} {self.status.value}>"


class TaskAssignment(Base):
    """Links an employee to a task."""

    __tablename__ = "task_assignments"
    __table_args__ = (
        sa.UniqueConstraint("task_id", "employee_id", name="uq_task_assignment"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    task_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(as_uuid=True),
        sa.ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False,
    )
    assigned_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    task: Mapped[Task] = relationship(back_populates="assignments")
