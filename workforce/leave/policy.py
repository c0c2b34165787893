"""Static leave-category configuration.

Loaded once at import and never mutated; every consumer reads the same
``CATEGORY_CONFIGS`` mapping.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from workforce.common.constants import DurationType, LeaveCategory


@dataclass(frozen=True)
class CategoryConfig:
    category: LeaveCategory
    label: str
    quota_per_year: int
    allowed_duration_types: frozenset[DurationType]
    calculated_by_tenure: bool = False
    is_birthday_gated: bool = False
    max_consecutive_days: Optional[int] = None
    min_days_notice: Optional[int] = None
    requires_documentation: bool = False

    def allows(self, duration_type: DurationType) -> bool:
        return duration_type in self.allowed_duration_types


_ALL_DURATIONS = frozenset(DurationType)
_DAY_DURATIONS = frozenset({DurationType.full_day, DurationType.half_day})

CATEGORY_CONFIGS: Mapping[LeaveCategory, CategoryConfig] = MappingProxyType({
    LeaveCategory.sick: CategoryConfig(
        category=LeaveCategory.sick,
        label="Sick Leave",
        quota_per_year=30,
        allowed_duration_types=_ALL_DURATIONS,
    ),
    LeaveCategory.personal: CategoryConfig(
        category=LeaveCategory.personal,
        label="Personal Leave",
        quota_per_year=3,
        allowed_duration_types=_ALL_DURATIONS,
        max_consecutive_days=3,
        min_days_notice=3,
    ),
    LeaveCategory.vacation: CategoryConfig(
        category=LeaveCategory.vacation,
        label="Vacation Leave",
        # Upper bound only; the real figure comes from tenure.
        quota_per_year=6,
        allowed_duration_types=_DAY_DURATIONS,
        calculated_by_tenure=True,
        min_days_notice=7,
    ),
    LeaveCategory.birthday: CategoryConfig(
        category=LeaveCategory.birthday,
        label="Birthday Leave",
        quota_per_year=1,
        allowed_duration_types=frozenset({DurationType.full_day}),
        is_birthday_gated=True,
        max_consecutive_days=1,
    ),
    LeaveCategory.other: CategoryConfig(
        category=LeaveCategory.other,
        label="Other Leave",
        quota_per_year=5,
        allowed_duration_types=_DAY_DURATIONS,
        requires_documentation=True,
    ),
})

# Rendering order for duration types in messages and API payloads.
DURATION_ORDER: tuple[DurationType, ...] = (
    DurationType.full_day,
    DurationType.half_day,
    DurationType.time_based,
)

SICK_CERTIFICATE_THRESHOLD_DAYS = 3
VACATION_MONTHS_PER_DAY = 2
VACATION_MAX_DAYS = 6


def sorted_durations(durations: frozenset[DurationType]) -> list[DurationType]:
    return [d for d in DURATION_ORDER if d in durations]
