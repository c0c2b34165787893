"""Scope and approval resolution.

All role-specific behaviour lives in ``ROLE_POLICIES``; callers ask this
module instead of branching on roles themselves.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional, Protocol, Sequence

from workforce.common.constants import PermissionScope, UserRole


class OrgProfile(Protocol):
    id: uuid.UUID
    role: UserRole
    department_id: Optional[uuid.UUID]
    sub_unit_id: Optional[uuid.UUID]
    supervisor_id: Optional[uuid.UUID]
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class RolePolicy:
    scope: PermissionScope
    can_approve: bool
    approval_chain: tuple[UserRole, ...]
    blanket_approval: bool = False


ROLE_POLICIES: Mapping[UserRole, RolePolicy] = MappingProxyType({
    UserRole.admin: RolePolicy(
        PermissionScope.all, True, (UserRole.admin,), blanket_approval=True,
    ),
    UserRole.customer_service: RolePolicy(
        PermissionScope.self_only, False, (UserRole.admin,),
    ),
    UserRole.finance_leader: RolePolicy(
        PermissionScope.department, True, (UserRole.admin,),
    ),
    UserRole.finance: RolePolicy(
        PermissionScope.self_only, False, (UserRole.finance_leader, UserRole.admin),
    ),
    UserRole.sales_leader: RolePolicy(
        PermissionScope.department, True, (UserRole.admin,),
    ),
    UserRole.sales: RolePolicy(
        PermissionScope.self_only, False, (UserRole.sales_leader, UserRole.admin),
    ),
    UserRole.head_tech: RolePolicy(
        PermissionScope.department, True, (UserRole.admin,),
    ),
    UserRole.leader: RolePolicy(
        PermissionScope.subunit, True, (UserRole.head_tech, UserRole.admin),
    ),
    UserRole.tech: RolePolicy(
        PermissionScope.self_only, False,
        (UserRole.leader, UserRole.head_tech, UserRole.admin),
    ),
})


def policy_for(role: UserRole) -> RolePolicy:
    return ROLE_POLICIES[role]


def approval_chain(role: UserRole) -> tuple[UserRole, ...]:
    return policy_for(role).approval_chain


# ── Visibility ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class LeaveVisibility:
    """Which owners' requests a viewer may see.

    The repository turns the same fields into a WHERE clause; ``allows`` is
    the in-memory form of that predicate.
    """

    viewer_id: uuid.UUID
    scope: PermissionScope
    department_id: Optional[uuid.UUID] = None
    sub_unit_id: Optional[uuid.UUID] = None

    def allows(self, owner: OrgProfile) -> bool:
        if owner.id == self.viewer_id or self.scope == PermissionScope.all:
            return True
        if self.scope == PermissionScope.subunit:
            return self.sub_unit_id is not None and owner.sub_unit_id == self.sub_unit_id
        if self.scope == PermissionScope.department:
            return (
                self.department_id is not None
                and owner.department_id == self.department_id
            )
        return False


def visibility_for(viewer: OrgProfile) -> LeaveVisibility:
    return LeaveVisibility(
        viewer_id=viewer.id,
        scope=policy_for(viewer.role).scope,
        department_id=viewer.department_id,
        sub_unit_id=viewer.sub_unit_id,
    )


# ── Approver resolution ─────────────────────────────────────────────


def _seniority_key(candidate: OrgProfile) -> tuple[datetime, str]:
    # SQLite hands back naive timestamps; stored values are UTC.
    created = candidate.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created, str(candidate.id)


def first_approver_for(
    requester: OrgProfile,
    candidates_by_role: Mapping[UserRole, Sequence[OrgProfile]],
) -> Optional[uuid.UUID]:
    """Resolve who should decide *requester*'s leave.

    A direct supervisor always wins. Otherwise the requester's approval chain
    is walked role by role; within a role the earliest-created active
    employee is chosen (id breaks ties). ``None`` means nobody could be
    found and the request needs manual escalation.
    """
    if requester.supervisor_id is not None and requester.supervisor_id != requester.id:
        return requester.supervisor_id

    for role in approval_chain(requester.role):
        eligible = [
            c for c in candidates_by_role.get(role, ())
            if c.is_active and c.id != requester.id
        ]
        if eligible:
            chosen = min(eligible, key=_seniority_key)
            return chosen.id
    return None


def can_decide(
    actor: OrgProfile,
    requester: OrgProfile,
    current_approver_id: Optional[uuid.UUID],
) -> bool:
    """Whether *actor* may approve or reject *requester*'s pending leave."""
    if actor.id == requester.id:
        return False
    if current_approver_id is not None and actor.id == current_approver_id:
        return True
    if requester.supervisor_id is not None and actor.id == requester.supervisor_id:
        return True

    policy = policy_for(actor.role)
    if policy.blanket_approval:
        return True
    return (
        policy.can_approve
        and actor.role in approval_chain(requester.role)
        and visibility_for(actor).allows(requester)
    )
