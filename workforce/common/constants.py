"""Enums and constants for the workforce platform — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    admin = "admin"
    customer_service = "customer_service"
    finance_leader = "finance_leader"
    finance = "finance"
    sales_leader = "sales_leader"
    sales = "sales"
    head_tech = "head_tech"
    leader = "leader"
    tech = "tech"


class PermissionScope(str, enum.Enum):
    """How far a role can see (and act on) other employees' records."""

    self_only = "self"
    subunit = "subunit"
    department = "department"
    all = "all"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


class LeaveCategory(str, enum.Enum):
    sick = "sick"
    personal = "personal"
    vacation = "vacation"
    birthday = "birthday"
    other = "other"


class DurationType(str, enum.Enum):
    full_day = "full_day"
    half_day = "half_day"
    time_based = "time_based"


class HalfDayPeriod(str, enum.Enum):
    morning = "morning"
    afternoon = "afternoon"


# ── Tasks ───────────────────────────────────────────────────────────

class TaskStatus(str, enum.Enum):
    waiting = "waiting"
    in_progress = "in_progress"
    done = "done"
    cancelled = "cancelled"


TERMINAL_TASK_STATUSES: frozenset[TaskStatus] = frozenset(
    {TaskStatus.done, TaskStatus.cancelled}
)


# ── Notifications ───────────────────────────────────────────────────

class NotificationType(str, enum.Enum):
    info = "info"
    action_required = "action_required"
    approval = "approval"
    alert = "alert"


# ── Misc constants ──────────────────────────────────────────────────

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
