"""Leave service layer — balances, validation, routing and the approval lifecycle.

Business logic:
  - Derived balance per employee/year (recomputed on every call)
  - Request preview and creation with full rule validation
  - Approver routing: supervisor first, then the role approval chain
  - Approve / reject / cancel as compare-and-swap transitions
  - Task-conflict gate on approval

The service never sends notifications itself; every outcome carries a
``LeaveNotificationContext`` for the caller.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from workforce.common.constants import LeaveStatus
from workforce.common.exceptions import (
    ForbiddenException,
    LeaveValidationError,
    NotFoundException,
    TaskConflictError,
)
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.leave.approval import (
    approval_chain,
    can_decide,
    first_approver_for,
    visibility_for,
)
from workforce.leave.conflicts import ConflictGate
from workforce.leave.policy import CATEGORY_CONFIGS, sorted_durations
from workforce.leave.ports import (
    LeaveRequestDraft,
    LeaveRequestFilter,
    LeaveStore,
    TaskSource,
)
from workforce.leave.quota import compute_balance, summarize_balance
from workforce.leave.schemas import (
    CategoryOut,
    LeaveCreateResult,
    LeaveNotificationContext,
    LeavePreviewOut,
    LeaveQuotaSummary,
    LeaveRequestCreate,
    LeaveRequestFilters,
    LeaveRequestOut,
    LeaveTransitionResult,
    LeaveValidationResult,
    TaskConflictReport,
    UserLeaveBalance,
)
from workforce.leave.state_machine import ensure_transition
from workforce.leave.timecalc import days_equivalent, describe_minutes, minutes_of_absence
from workforce.leave.validator import validate_request

logger = logging.getLogger(__name__)

ESCALATION_WARNING = (
    "No approver could be resolved for this request; it needs manual escalation."
)


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations over a leave store and a task source."""

    def __init__(self, store: LeaveStore, tasks: TaskSource) -> None:
        self.store = store
        self.gate = ConflictGate(tasks)

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    async def _get_employee(self, employee_id: uuid.UUID, *, lock: bool = False) -> Any:
        employee = await self.store.find_employee(employee_id, lock=lock)
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    async def _get_leave(self, request_id: uuid.UUID) -> Any:
        leave = await self.store.find_leave_request(request_id)
        if leave is None:
            raise NotFoundException("LeaveRequest", str(request_id))
        return leave

    async def _balance_for(
        self, employee: Any, year: int, today: date,
    ) -> UserLeaveBalance:
        requests = await self.store.find_leave_requests(
            LeaveRequestFilter(
                employee_id=employee.id,
                year_from=year,
                year_to=year,
                status_in=(LeaveStatus.approved, LeaveStatus.pending),
            )
        )
        return compute_balance(
            employee.id,
            requests,
            year=year,
            employment_start_date=employee.employment_start_date,
            birth_month=employee.birth_month,
            reference_date=today,
        )

    async def _resolve_approver(self, employee: Any) -> Optional[uuid.UUID]:
        candidates = {}
        if employee.supervisor_id is None:
            for role in approval_chain(employee.role):
                candidates[role] = await self.store.find_employees_by_role(role)
        return first_approver_for(employee, candidates)

    async def _evaluate(
        self, employee: Any, data: LeaveRequestCreate, today: date,
    ) -> tuple[int, Any, LeaveValidationResult]:
        minutes = minutes_of_absence(
            data.start_date,
            data.end_date,
            data.duration_type,
            data.start_time,
            data.end_time,
        )
        total_days = days_equivalent(minutes)
        balance = await self._balance_for(employee, data.start_date.year, today)
        result = validate_request(
            data.category,
            data.start_date,
            data.end_date,
            total_days,
            data.duration_type,
            balance,
            data.half_day_period,
            start_time=data.start_time,
            end_time=data.end_time,
            today=today,
        )
        return minutes, total_days, result

    async def _authorize_decision(self, leave: Any, actor_id: uuid.UUID) -> Any:
        actor = await self._get_employee(actor_id)
        if not can_decide(actor, leave.employee, leave.current_approver_id):
            raise ForbiddenException(
                "You are not authorized to decide this leave request."
            )
        return actor

    @staticmethod
    def _notification(
        leave: Any,
        *,
        actor_id: uuid.UUID,
        previous_status: Optional[LeaveStatus] = None,
        note: Optional[str] = None,
    ) -> LeaveNotificationContext:
        return LeaveNotificationContext(
            request_id=leave.id,
            requester_id=leave.employee_id,
            requester_name=leave.employee.full_name,
            category=leave.category,
            category_label=CATEGORY_CONFIGS[leave.category].label,
            approver_id=leave.current_approver_id,
            start_date=leave.start_date,
            end_date=leave.end_date,
            total_days=leave.total_days,
            duration_display=describe_minutes(leave.total_minutes),
            status=leave.status,
            previous_status=previous_status,
            actor_id=actor_id,
            note=note,
        )

    # ─────────────────────────────────────────────────────────────────
    # Categories & balances
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def list_categories() -> list[CategoryOut]:
        return [
            CategoryOut(
                category=cfg.category,
                label=cfg.label,
                quota_per_year=cfg.quota_per_year,
                allowed_duration_types=sorted_durations(cfg.allowed_duration_types),
                calculated_by_tenure=cfg.calculated_by_tenure,
                is_birthday_gated=cfg.is_birthday_gated,
                max_consecutive_days=cfg.max_consecutive_days,
                min_days_notice=cfg.min_days_notice,
                requires_documentation=cfg.requires_documentation,
            )
            for cfg in CATEGORY_CONFIGS.values()
        ]

    async def get_balance(
        self,
        employee_id: uuid.UUID,
        year: Optional[int] = None,
        *,
        today: Optional[date] = None,
    ) -> UserLeaveBalance:
        """Derived balance for one employee and calendar year."""
        today = today or date.today()
        employee = await self._get_employee(employee_id)
        return await self._balance_for(employee, year or today.year, today)

    async def get_balance_summary(
        self,
        employee_id: uuid.UUID,
        year: Optional[int] = None,
        *,
        viewer_id: Optional[uuid.UUID] = None,
        today: Optional[date] = None,
    ) -> LeaveQuotaSummary:
        """Display-ready balance. A *viewer_id* other than the employee must
        have the employee inside their scope."""
        today = today or date.today()
        employee = await self._get_employee(employee_id)
        if viewer_id is not None and viewer_id != employee_id:
            viewer = await self._get_employee(viewer_id)
            if not visibility_for(viewer).allows(employee):
                raise ForbiddenException("You cannot view this employee's leave balance.")
        balance = await self._balance_for(employee, year or today.year, today)
        return summarize_balance(balance, today)

    # ─────────────────────────────────────────────────────────────────
    # Preview / Apply
    # ─────────────────────────────────────────────────────────────────

    async def preview_request(
        self,
        employee_id: uuid.UUID,
        data: LeaveRequestCreate,
        *,
        today: Optional[date] = None,
    ) -> LeavePreviewOut:
        """Everything ``apply_leave`` would decide, without writing anything."""
        today = today or date.today()
        employee = await self._get_employee(employee_id)
        minutes, total_days, result = await self._evaluate(employee, data, today)
        approver_id = await self._resolve_approver(employee)

        conflicts = TaskConflictReport(has_conflicts=False)
        if data.end_date >= data.start_date:
            conflicts = await self.gate.check(employee.id, data.start_date, data.end_date)

        return LeavePreviewOut(
            validation=result,
            total_minutes=minutes,
            total_days=total_days,
            duration_display=describe_minutes(minutes),
            approver_id=approver_id,
            requires_escalation=approver_id is None,
            conflicts=conflicts,
        )

    async def apply_leave(
        self,
        employee_id: uuid.UUID,
        data: LeaveRequestCreate,
        *,
        today: Optional[date] = None,
    ) -> LeaveCreateResult:
        """Validate and create a PENDING request for *employee_id*.

        The employee row is locked for the validate-then-insert sequence so
        concurrent requests cannot both spend the same remaining quota.
        """
        today = today or date.today()
        employee = await self._get_employee(employee_id, lock=True)
        minutes, total_days, result = await self._evaluate(employee, data, today)

        if not result.is_valid:
            logger.info(
                "Leave request by %s rejected by validation: %s",
                employee.id, "; ".join(result.errors),
            )
            raise LeaveValidationError(result.errors, result.warnings)

        warnings = list(result.warnings)
        approver_id = await self._resolve_approver(employee)
        if approver_id is None:
            logger.warning(
                "No approver resolvable for employee %s (role %s); escalation required",
                employee.id, employee.role.value,
            )
            warnings.append(ESCALATION_WARNING)

        draft = LeaveRequestDraft(
            employee_id=employee.id,
            category=data.category,
            start_date=data.start_date,
            end_date=data.end_date,
            duration_type=data.duration_type,
            half_day_period=data.half_day_period,
            start_time=data.start_time,
            end_time=data.end_time,
            total_minutes=minutes,
            total_days=total_days,
            reason=data.reason,
            current_approver_id=approver_id,
            approval_level=1,
            validation_warnings=warnings,
            requires_escalation=approver_id is None,
        )
        leave = await self.store.create_leave_request(draft, actor_id=employee.id)
        logger.info(
            "Leave request %s created for %s (%s, %s day(s)), approver %s",
            leave.id, employee.id, data.category.value, total_days, approver_id,
        )

        return LeaveCreateResult(
            request=LeaveRequestOut.model_validate(leave),
            warnings=warnings,
            requires_escalation=approver_id is None,
            notification=self._notification(leave, actor_id=employee.id),
        )

    # ─────────────────────────────────────────────────────────────────
    # Transitions
    # ─────────────────────────────────────────────────────────────────

    async def approve_leave(
        self,
        request_id: uuid.UUID,
        actor_id: uuid.UUID,
        *,
        note: Optional[str] = None,
    ) -> LeaveTransitionResult:
        """Approve a pending request; blocked while the requester has
        unfinished tasks inside the leave window."""
        leave = await self._get_leave(request_id)
        ensure_transition(leave.status, LeaveStatus.approved)
        actor = await self._authorize_decision(leave, actor_id)

        report = await self.gate.check(leave.employee_id, leave.start_date, leave.end_date)
        if report.has_conflicts:
            logger.info(
                "Approval of %s blocked by %d task conflict(s)",
                leave.id, report.conflict_count,
            )
            raise TaskConflictError(
                [task.model_dump(mode="json") for task in report.conflicting_tasks]
            )

        updated = await self.store.transition_leave_request(
            leave.id,
            LeaveStatus.pending,
            LeaveStatus.approved,
            {
                "approver_id": actor.id,
                "approver_note": note,
                "decided_at": datetime.now(timezone.utc),
            },
            actor_id=actor.id,
        )
        logger.info("Leave request %s approved by %s", leave.id, actor.id)
        return LeaveTransitionResult(
            request=LeaveRequestOut.model_validate(updated),
            notification=self._notification(
                updated, actor_id=actor.id,
                previous_status=LeaveStatus.pending, note=note,
            ),
        )

    async def reject_leave(
        self,
        request_id: uuid.UUID,
        actor_id: uuid.UUID,
        *,
        reason: Optional[str] = None,
    ) -> LeaveTransitionResult:
        leave = await self._get_leave(request_id)
        ensure_transition(leave.status, LeaveStatus.rejected)
        actor = await self._authorize_decision(leave, actor_id)

        updated = await self.store.transition_leave_request(
            leave.id,
            LeaveStatus.pending,
            LeaveStatus.rejected,
            {
                "approver_id": actor.id,
                "approver_note": reason,
                "decided_at": datetime.now(timezone.utc),
            },
            actor_id=actor.id,
        )
        logger.info("Leave request %s rejected by %s", leave.id, actor.id)
        return LeaveTransitionResult(
            request=LeaveRequestOut.model_validate(updated),
            notification=self._notification(
                updated, actor_id=actor.id,
                previous_status=LeaveStatus.pending, note=reason,
            ),
        )

    async def cancel_leave(
        self,
        request_id: uuid.UUID,
        actor_id: uuid.UUID,
        *,
        reason: Optional[str] = None,
    ) -> LeaveTransitionResult:
        """Owner-only withdrawal of a still-pending request."""
        leave = await self._get_leave(request_id)
        if leave.employee_id != actor_id:
            raise ForbiddenException("You can only cancel your own leave requests.")
        ensure_transition(leave.status, LeaveStatus.cancelled)

        updated = await self.store.transition_leave_request(
            leave.id,
            LeaveStatus.pending,
            LeaveStatus.cancelled,
            {
                "cancelled_at": datetime.now(timezone.utc),
                "cancel_reason": reason,
            },
            actor_id=actor_id,
        )
        logger.info("Leave request %s cancelled by its owner", leave.id)
        return LeaveTransitionResult(
            request=LeaveRequestOut.model_validate(updated),
            notification=self._notification(
                updated, actor_id=actor_id,
                previous_status=LeaveStatus.pending, note=reason,
            ),
        )

    # ─────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────

    async def _get_visible_leave(self, request_id: uuid.UUID, viewer_id: uuid.UUID) -> Any:
        leave = await self._get_leave(request_id)
        viewer = await self._get_employee(viewer_id)
        owner = leave.employee
        if not (
            visibility_for(viewer).allows(owner)
            or leave.current_approver_id == viewer.id
            or owner.supervisor_id == viewer.id
        ):
            raise ForbiddenException("You cannot view this leave request.")
        return leave

    async def get_request(
        self, request_id: uuid.UUID, viewer_id: uuid.UUID,
    ) -> LeaveRequestOut:
        leave = await self._get_visible_leave(request_id, viewer_id)
        return LeaveRequestOut.model_validate(leave)

    async def check_task_conflicts(
        self, request_id: uuid.UUID, viewer_id: uuid.UUID,
    ) -> TaskConflictReport:
        leave = await self._get_visible_leave(request_id, viewer_id)
        return await self.gate.check(leave.employee_id, leave.start_date, leave.end_date)

    async def list_requests(
        self,
        viewer_id: uuid.UUID,
        filters: LeaveRequestFilters,
        params: PaginationParams,
    ) -> PaginatedResponse[LeaveRequestOut]:
        """Requests the viewer's scope allows, newest first."""
        viewer = await self._get_employee(viewer_id)
        page = await self.store.list_leave_requests(visibility_for(viewer), filters, params)
        return PaginatedResponse[LeaveRequestOut](
            data=[LeaveRequestOut.model_validate(r) for r in page.data],
            meta=page.meta,
        )

    async def pending_approvals(
        self, approver_id: uuid.UUID, params: PaginationParams,
    ) -> PaginatedResponse[LeaveRequestOut]:
        page = await self.store.list_pending_for_approver(approver_id, params)
        return PaginatedResponse[LeaveRequestOut](
            data=[LeaveRequestOut.model_validate(r) for r in page.data],
            meta=page.meta,
        )
