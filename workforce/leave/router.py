"""Leave router — categories, balances, validation, apply, approve/reject/cancel.

All endpoints require authentication. Notifications are written here, after
the service has returned successfully.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import get_current_user
from workforce.common.constants import LeaveCategory, LeaveStatus
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.common.rate_limit import limiter
from workforce.database import get_db
from workforce.leave.repository import SqlLeaveStore
from workforce.leave.schemas import (
    CategoryOut,
    LeaveApproveRequest,
    LeaveCancelRequest,
    LeaveCreateResult,
    LeavePreviewOut,
    LeaveQuotaSummary,
    LeaveRejectRequest,
    LeaveRequestCreate,
    LeaveRequestFilters,
    LeaveRequestOut,
    LeaveTransitionResult,
    TaskConflictReport,
)
from workforce.leave.service import LeaveService
from workforce.notifications.service import (
    notify_leave_approved,
    notify_leave_cancelled,
    notify_leave_rejected,
    notify_leave_request,
)
from workforce.org.models import Employee
from workforce.tasks.repository import SqlTaskSource

router = APIRouter(prefix="", tags=["leave"])


def get_leave_service(db: AsyncSession = Depends(get_db)) -> LeaveService:
    return LeaveService(SqlLeaveStore(db), SqlTaskSource(db))


# ── GET /categories ─────────────────────────────────────────────────

@router.get("/categories", response_model=list[CategoryOut])
async def list_categories(
    employee: Employee = Depends(get_current_user),
):
    """Static configuration of every leave category."""
    return LeaveService.list_categories()


# ── GET /balances ───────────────────────────────────────────────────

@router.get("/balances", response_model=LeaveQuotaSummary)
async def get_balances(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    employee_id: Optional[uuid.UUID] = Query(None),
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Derived balance for the caller, or for an employee inside the caller's scope."""
    return await service.get_balance_summary(
        employee_id or employee.id, year, viewer_id=employee.id,
    )


# ── POST /validate ──────────────────────────────────────────────────

@router.post("/validate", response_model=LeavePreviewOut)
@limiter.limit("30/minute")
async def validate_leave(
    request: Request,
    body: LeaveRequestCreate,
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Dry run: rule check, computed totals, approver and task conflicts."""
    return await service.preview_request(employee.id, body)


# ── POST /apply ─────────────────────────────────────────────────────

@router.post("/apply", response_model=LeaveCreateResult, status_code=201)
@limiter.limit("10/minute")
async def apply_leave(
    request: Request,
    body: LeaveRequestCreate,
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
    db: AsyncSession = Depends(get_db),
):
    """Apply for leave. Any rule violation rejects the whole request."""
    result = await service.apply_leave(employee.id, body)
    await notify_leave_request(db, result.notification)
    return result


# ── GET /requests ───────────────────────────────────────────────────

@router.get("/requests", response_model=PaginatedResponse[LeaveRequestOut])
async def list_requests(
    status: Optional[LeaveStatus] = Query(None),
    category: Optional[LeaveCategory] = Query(None),
    employee_id: Optional[uuid.UUID] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(PaginationParams),
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Leave requests visible to the caller's role scope, newest first."""
    filters = LeaveRequestFilters(
        employee_id=employee_id,
        status=status,
        category=category,
        from_date=from_date,
        to_date=to_date,
    )
    return await service.list_requests(employee.id, filters, pagination)


# ── GET /requests/pending-approvals ─────────────────────────────────

@router.get(
    "/requests/pending-approvals",
    response_model=PaginatedResponse[LeaveRequestOut],
)
async def pending_approvals(
    pagination: PaginationParams = Depends(PaginationParams),
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Pending requests currently routed to the caller."""
    return await service.pending_approvals(employee.id, pagination)


# ── GET /requests/{id} ──────────────────────────────────────────────

@router.get("/requests/{request_id}", response_model=LeaveRequestOut)
async def get_request(
    request_id: uuid.UUID,
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    return await service.get_request(request_id, employee.id)


# ── GET /requests/{id}/conflicts ────────────────────────────────────

@router.get("/requests/{request_id}/conflicts", response_model=TaskConflictReport)
async def request_conflicts(
    request_id: uuid.UUID,
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Unfinished tasks of the requester that overlap the leave window."""
    return await service.check_task_conflicts(request_id, employee.id)


# ── PUT /requests/{id}/approve ──────────────────────────────────────

@router.put("/requests/{request_id}/approve", response_model=LeaveTransitionResult)
async def approve_leave(
    request_id: uuid.UUID,
    body: LeaveApproveRequest,
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
    db: AsyncSession = Depends(get_db),
):
    """Approve a pending request. Blocked (409) while task conflicts exist."""
    result = await service.approve_leave(request_id, employee.id, note=body.note)
    await notify_leave_approved(db, result.notification)
    return result


# ── PUT /requests/{id}/reject ───────────────────────────────────────

@router.put("/requests/{request_id}/reject", response_model=LeaveTransitionResult)
async def reject_leave(
    request_id: uuid.UUID,
    body: LeaveRejectRequest,
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
    db: AsyncSession = Depends(get_db),
):
    result = await service.reject_leave(request_id, employee.id, reason=body.reason)
    await notify_leave_rejected(db, result.notification)
    return result


# ── PUT /requests/{id}/cancel ───────────────────────────────────────

@router.put("/requests/{request_id}/cancel", response_model=LeaveTransitionResult)
async def cancel_leave(
    request_id: uuid.UUID,
    body: LeaveCancelRequest,
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw your own pending request."""
    result = await service.cancel_leave(request_id, employee.id, reason=body.reason)
    await notify_leave_cancelled(db, result.notification)
    return result
