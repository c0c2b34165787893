"""Leave request lifecycle.

PENDING is the only state with exits; every other state is terminal.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from workforce.common.constants import LeaveStatus
from workforce.common.exceptions import InvalidTransitionError

ALLOWED_TRANSITIONS: Mapping[LeaveStatus, frozenset[LeaveStatus]] = MappingProxyType({
    LeaveStatus.pending: frozenset(
        {LeaveStatus.approved, LeaveStatus.rejected, LeaveStatus.cancelled}
    ),
    LeaveStatus.approved: frozenset(),
    LeaveStatus.rejected: frozenset(),
    LeaveStatus.cancelled: frozenset(),
})


def reachable_from(status: LeaveStatus) -> frozenset[LeaveStatus]:
    return ALLOWED_TRANSITIONS[status]


def is_terminal(status: LeaveStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


def ensure_transition(current: LeaveStatus, target: LeaveStatus) -> None:
    """Raise ``InvalidTransitionError`` unless ``current → target`` is an edge."""
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)
