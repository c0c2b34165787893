"""Leave request validator.

Pure: takes the request shape and an already-derived balance, returns every
error and warning it finds. Nothing short-circuits.
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal
from typing import Optional

from workforce.common.constants import DurationType, HalfDayPeriod, LeaveCategory
from workforce.leave.policy import (
    CATEGORY_CONFIGS,
    SICK_CERTIFICATE_THRESHOLD_DAYS,
    sorted_durations,
)
from workforce.leave.schemas import LeaveValidationResult, UserLeaveBalance
from workforce.leave.timecalc import check_time_window


def format_days(value: Decimal) -> str:
    """Render a day count without trailing zeros (``Decimal("2.000")`` → ``"2"``)."""
    return format(Decimal(value).normalize(), "f")


def validate_request(
    category: LeaveCategory,
    start_date: date,
    end_date: date,
    total_days: Decimal,
    duration_type: DurationType,
    balance: UserLeaveBalance,
    half_day_period: Optional[HalfDayPeriod] = None,
    *,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    today: Optional[date] = None,
) -> LeaveValidationResult:
    today = today or date.today()
    config = CATEGORY_CONFIGS[category]
    errors: list[str] = []
    warnings: list[str] = []

    # 1. duration type
    if not config.allows(duration_type):
        allowed = ", ".join(d.value for d in sorted_durations(config.allowed_duration_types))
        errors.append(
            f"{config.label} does not allow {duration_type.value}; "
            f"allowed duration types: {allowed}."
        )

    # 2. quota
    remaining = balance.for_category(category).remaining
    if total_days > remaining:
        errors.append(
            f"Insufficient {config.label} balance: "
            f"remaining {format_days(remaining)}, requested {format_days(total_days)}."
        )

    # 3. consecutive days
    if config.max_consecutive_days is not None and total_days > config.max_consecutive_days:
        errors.append(
            f"{config.label} cannot exceed {config.max_consecutive_days} "
            f"consecutive day(s); requested {format_days(total_days)}."
        )

    # 4. birth month
    if config.is_birthday_gated:
        if balance.birth_month is None:
            errors.append(
                f"{config.label} can only be taken in your birth month, "
                "and no birth month is on file."
            )
        elif start_date.month != balance.birth_month:
            errors.append(
                f"{config.label} can only be taken in "
                f"{calendar.month_name[balance.birth_month]}."
            )

    # 5. notice
    if config.min_days_notice is not None:
        notice = (start_date - today).days
        if notice < config.min_days_notice:
            warnings.append(
                f"{config.label} should be requested at least "
                f"{config.min_days_notice} day(s) in advance; given {max(notice, 0)}."
            )

    # 6. documentation
    if config.requires_documentation:
        warnings.append(f"{config.label} requires supporting documentation.")

    # 7. medical certificate
    if category == LeaveCategory.sick and total_days > SICK_CERTIFICATE_THRESHOLD_DAYS:
        warnings.append(
            f"Sick leave longer than {SICK_CERTIFICATE_THRESHOLD_DAYS} days "
            "requires a medical certificate."
        )

    errors.extend(
        _shape_errors(start_date, end_date, duration_type, half_day_period, start_time, end_time)
    )

    return LeaveValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def _shape_errors(
    start_date: date,
    end_date: date,
    duration_type: DurationType,
    half_day_period: Optional[HalfDayPeriod],
    start_time: Optional[str],
    end_time: Optional[str],
) -> list[str]:
    errors = []
    if end_date < start_date:
        errors.append("End date must be on or after start date.")

    if duration_type == DurationType.half_day and half_day_period is None:
        errors.append("Half-day leave needs a period (morning or afternoon).")
    if duration_type != DurationType.half_day and half_day_period is not None:
        errors.append("A half-day period is only valid for half-day leave.")

    if duration_type == DurationType.time_based:
        if not start_time or not end_time:
            errors.append("Time-based leave needs both a start time and an end time.")
        else:
            if start_date != end_date:
                errors.append("Time-based leave must start and end on the same date.")
            window_error = check_time_window(start_time, end_time)
            if window_error:
                errors.append(window_error)
    elif start_time or end_time:
        errors.append("Start and end times are only valid for time-based leave.")

    return errors
