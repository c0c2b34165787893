"""Minute arithmetic: day lengths, lunch deduction and window checks."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from workforce.common.constants import DurationType
from workforce.leave.timecalc import (
    END_BEFORE_START_MSG,
    INSIDE_LUNCH_MSG,
    MIN_LEAVE_MINUTES,
    TOO_SHORT_MSG,
    calendar_days,
    check_time_window,
    days_equivalent,
    describe_minutes,
    lunch_overlap,
    minutes_of_absence,
    parse_clock,
)

DAY = date(2026, 3, 10)


class TestMinutesOfAbsence:

    def test_full_day_counts_calendar_days(self):
        """Three inclusive calendar days → 3 × 480."""
        assert minutes_of_absence(DAY, date(2026, 3, 12), DurationType.full_day) == 1440

    def test_half_day_is_240_per_day(self):
        assert minutes_of_absence(DAY, date(2026, 3, 11), DurationType.half_day) == 480

    def test_window_spanning_lunch_loses_the_hour(self):
        """11:30–13:30 → 120 raw minus 60 lunch → 60."""
        minutes = minutes_of_absence(
            DAY, DAY, DurationType.time_based, "11:30", "13:30",
        )
        assert minutes == 60
        assert days_equivalent(minutes) == Decimal("0.125")

    def test_repeating_fraction_fixed_to_six_places(self):
        """40 minutes is 1/12 of a day."""
        assert days_equivalent(40) == Decimal("0.083333")
        assert days_equivalent(480) == Decimal("1")

    def test_window_inside_lunch_is_zero(self):
        assert minutes_of_absence(DAY, DAY, DurationType.time_based, "12:10", "12:50") == 0

    def test_partial_lunch_overlap(self):
        """11:45–12:20 → 35 raw, 20 inside lunch → 15."""
        assert minutes_of_absence(DAY, DAY, DurationType.time_based, "11:45", "12:20") == 15

    def test_working_day_window(self):
        assert minutes_of_absence(DAY, DAY, DurationType.time_based, "08:00", "17:00") == 480

    def test_inverted_window_is_zero(self):
        assert minutes_of_absence(DAY, DAY, DurationType.time_based, "15:00", "09:00") == 0

    def test_time_based_without_times_is_zero(self):
        assert minutes_of_absence(DAY, DAY, DurationType.time_based) == 0

    def test_never_negative_across_the_day(self):
        """Every quarter-hour window from 08:00 to 17:30 yields ≥ 0 minutes."""
        slots = [f"{h:02d}:{m:02d}" for h in range(8, 18) for m in (0, 15, 30, 45)]
        for start in slots:
            for end in slots:
                assert minutes_of_absence(DAY, DAY, DurationType.time_based, start, end) >= 0


class TestCheckTimeWindow:

    def test_valid_window(self):
        assert check_time_window("09:00", "10:00") is None

    def test_end_before_start(self):
        assert check_time_window("10:00", "09:00") == END_BEFORE_START_MSG

    def test_equal_times(self):
        assert check_time_window("10:00", "10:00") == END_BEFORE_START_MSG

    def test_entirely_within_lunch(self):
        """Lunch-only windows get their own message, not the generic minimum."""
        assert check_time_window("12:10", "12:50") == INSIDE_LUNCH_MSG
        assert check_time_window("12:00", "13:00") == INSIDE_LUNCH_MSG
        assert "entirely within lunch break" in INSIDE_LUNCH_MSG

    def test_too_short(self):
        assert check_time_window("09:00", "09:20") == TOO_SHORT_MSG

    def test_too_short_after_lunch_deduction(self):
        assert check_time_window("11:45", "12:20") == TOO_SHORT_MSG

    def test_exact_minimum_is_allowed(self):
        assert check_time_window("09:00", "09:30") is None
        assert MIN_LEAVE_MINUTES == 30

    def test_malformed_clock(self):
        assert check_time_window("9am", "10:00") is not None


class TestHelpers:

    @pytest.mark.parametrize("value, expected", [
        ("00:00", 0),
        ("08:30", 510),
        ("23:59", 1439),
    ])
    def test_parse_clock(self, value, expected):
        assert parse_clock(value) == expected

    @pytest.mark.parametrize("value", ["24:00", "12:60", "1230", "ab:cd", "12:5"])
    def test_parse_clock_rejects_garbage(self, value):
        with pytest.raises(ValueError):
            parse_clock(value)

    def test_lunch_overlap_outside(self):
        assert lunch_overlap(parse_clock("08:00"), parse_clock("11:00")) == 0
        assert lunch_overlap(parse_clock("13:00"), parse_clock("15:00")) == 0

    def test_calendar_days_inverted(self):
        assert calendar_days(date(2026, 3, 12), date(2026, 3, 10)) == 0

    @pytest.mark.parametrize("minutes, expected", [
        (0, "0 minutes"),
        (45, "45 minutes"),
        (60, "1 hour"),
        (540, "1 day 1 hour"),
        (1110, "2 days 2 hours 30 minutes"),
    ])
    def test_describe_minutes(self, minutes, expected):
        assert describe_minutes(minutes) == expected
