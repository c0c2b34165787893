"""Minute-level leave arithmetic.

Everything here is pure. A working day is 480 minutes and the lunch break
12:00-13:00 is never counted as absence.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from workforce.common.constants import DurationType

WORK_MINUTES_PER_DAY = 480
HALF_DAY_MINUTES = WORK_MINUTES_PER_DAY // 2
LUNCH_START_MINUTE = 12 * 60
LUNCH_END_MINUTE = 13 * 60
MIN_LEAVE_MINUTES = 30

# Matches the scale of leave_requests.total_days.
DAYS_QUANTUM = Decimal("0.000001")

END_BEFORE_START_MSG = "End time must be after start time."
INSIDE_LUNCH_MSG = "The requested time window is entirely within lunch break (12:00-13:00)."
TOO_SHORT_MSG = (
    f"Leave must be at least {MIN_LEAVE_MINUTES} minutes after deducting "
    "the lunch break."
)
BAD_CLOCK_MSG = "Times must use the 24-hour HH:MM format."


def parse_clock(value: str) -> int:
    """Convert ``"HH:MM"`` to minutes since midnight.

    Raises ``ValueError`` for anything that is not a valid 24-hour time.
    """
    hours_str, sep, minutes_str = value.partition(":")
    if not sep or len(minutes_str) != 2 or not hours_str.isdigit() or not minutes_str.isdigit():
        raise ValueError(f"Invalid clock time {value!r}")
    hours, minutes = int(hours_str), int(minutes_str)
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid clock time {value!r}")
    return hours * 60 + minutes


def lunch_overlap(start_minute: int, end_minute: int) -> int:
    """Minutes of ``[start_minute, end_minute]`` that fall inside lunch."""
    overlap_start = max(start_minute, LUNCH_START_MINUTE)
    overlap_end = min(end_minute, LUNCH_END_MINUTE)
    return max(overlap_end - overlap_start, 0)


def calendar_days(start_date: date, end_date: date) -> int:
    """Inclusive day count; 0 when the range is inverted."""
    return max((end_date - start_date).days + 1, 0)


def effective_window_minutes(start_time: str, end_time: str) -> int:
    start_minute = parse_clock(start_time)
    end_minute = parse_clock(end_time)
    raw = end_minute - start_minute
    if raw <= 0:
        return 0
    return max(raw - lunch_overlap(start_minute, end_minute), 0)


def minutes_of_absence(
    start_date: date,
    end_date: date,
    duration_type: DurationType,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
) -> int:
    """Canonical minutes of absence for a request. Never negative."""
    if duration_type == DurationType.full_day:
        return calendar_days(start_date, end_date) * WORK_MINUTES_PER_DAY
    if duration_type == DurationType.half_day:
        return calendar_days(start_date, end_date) * HALF_DAY_MINUTES
    if not start_time or not end_time:
        return 0
    return effective_window_minutes(start_time, end_time)


def check_time_window(start_time: str, end_time: str) -> Optional[str]:
    """Return the reason a clock window is unusable, or ``None`` if it is fine."""
    try:
        start_minute = parse_clock(start_time)
        end_minute = parse_clock(end_time)
    except ValueError:
        return BAD_CLOCK_MSG

    if end_minute <= start_minute:
        return END_BEFORE_START_MSG
    if start_minute >= LUNCH_START_MINUTE and end_minute <= LUNCH_END_MINUTE:
        return INSIDE_LUNCH_MSG
    if effective_window_minutes(start_time, end_time) < MIN_LEAVE_MINUTES:
        return TOO_SHORT_MSG
    return None


def days_equivalent(minutes: int) -> Decimal:
    return (Decimal(minutes) / Decimal(WORK_MINUTES_PER_DAY)).quantize(DAYS_QUANTUM)


def minutes_to_hours_minutes(minutes: int) -> tuple[int, int]:
    return divmod(minutes, 60)


def describe_minutes(total_minutes: int) -> str:
    """Human rendering such as ``"1 day 2 hours 30 minutes"``."""
    if total_minutes <= 0:
        return "0 minutes"

    days, remainder = divmod(total_minutes, WORK_MINUTES_PER_DAY)
    hours, minutes = minutes_to_hours_minutes(remainder)

    parts = []
    for amount, unit in ((days, "day"), (hours, "hour"), (minutes, "minute")):
        if amount:
            parts.append(f"{amount} {unit}{'s' if amount != 1 else ''}")
    return " ".join(parts)
