"""Quota calculator and balance aggregator.

Balances are derived on every call from the employee's requests for the
year; nothing here is cached or stored.
"""

from __future__ import annotations

import calendar
import uuid
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Protocol

from workforce.common.constants import LeaveCategory, LeaveStatus
from workforce.leave.policy import (
    CATEGORY_CONFIGS,
    VACATION_MAX_DAYS,
    VACATION_MONTHS_PER_DAY,
    sorted_durations,
)
from workforce.leave.schemas import (
    CategoryQuota,
    CategorySummary,
    LeaveQuotaSummary,
    UserLeaveBalance,
)

ZERO = Decimal("0")

# A "month" of service is a flat 30 days, not a calendar month.
DAYS_PER_SERVICE_MONTH = 30


class BalanceRecord(Protocol):
    category: LeaveCategory
    status: LeaveStatus
    start_date: date
    total_days: Decimal


def months_employed(tenure_start: Optional[date], reference_date: date) -> int:
    if tenure_start is None or tenure_start > reference_date:
        return 0
    return (reference_date - tenure_start).days // DAYS_PER_SERVICE_MONTH


def quota_for(
    category: LeaveCategory,
    tenure_start: Optional[date] = None,
    *,
    reference_date: date,
) -> int:
    """Yearly entitlement in days for *category*.

    VACATION earns one day per two service months, capped at six. Birthday
    keeps its static quota here; whether it can be used is decided by the
    validator.
    """
    config = CATEGORY_CONFIGS[category]
    if not config.calculated_by_tenure:
        return config.quota_per_year

    months = months_employed(tenure_start, reference_date)
    return min(months // VACATION_MONTHS_PER_DAY, VACATION_MAX_DAYS)


def compute_balance(
    employee_id: uuid.UUID,
    requests: Iterable[BalanceRecord],
    *,
    year: int,
    employment_start_date: Optional[date] = None,
    birth_month: Optional[int] = None,
    reference_date: Optional[date] = None,
) -> UserLeaveBalance:
    """Fold approved and pending requests of *year* into per-category totals.

    A request belongs to the year of its start date. Rejected and cancelled
    requests are ignored.
    """
    reference_date = reference_date or date.today()
    used: dict[LeaveCategory, Decimal] = defaultdict(lambda: ZERO)
    pending: dict[LeaveCategory, Decimal] = defaultdict(lambda: ZERO)

    for record in requests:
        if record.start_date.year != year:
            continue
        if record.status == LeaveStatus.approved:
            used[record.category] += Decimal(record.total_days)
        elif record.status == LeaveStatus.pending:
            pending[record.category] += Decimal(record.total_days)

    quotas = []
    for category in LeaveCategory:
        total = quota_for(
            category, employment_start_date, reference_date=reference_date,
        )
        quotas.append(
            CategoryQuota(
                category=category,
                total_quota=total,
                used=used[category],
                pending=pending[category],
                remaining=max(ZERO, Decimal(total) - used[category] - pending[category]),
            )
        )

    return UserLeaveBalance(
        employee_id=employee_id,
        year=year,
        employment_start_date=employment_start_date,
        birth_month=birth_month,
        quotas=quotas,
    )


def summarize_balance(
    balance: UserLeaveBalance,
    reference_date: Optional[date] = None,
) -> LeaveQuotaSummary:
    reference_date = reference_date or date.today()
    lines = []
    for quota in balance.quotas:
        config = CATEGORY_CONFIGS[quota.category]
        note = None
        if config.calculated_by_tenure and balance.employment_start_date:
            months = months_employed(balance.employment_start_date, reference_date)
            note = f"Based on {months} months of service (one day per two months)"
        if config.is_birthday_gated and balance.birth_month:
            note = f"Only usable in {calendar.month_name[balance.birth_month]}"

        lines.append(
            CategorySummary(
                **quota.model_dump(),
                label=config.label,
                allowed_duration_types=sorted_durations(config.allowed_duration_types),
                note=note,
            )
        )
    return LeaveQuotaSummary(
        employee_id=balance.employee_id, year=balance.year, categories=lines,
    )
