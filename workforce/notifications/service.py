"""Notification service — in-app notification writer and leave dispatchers.

The leave engine returns a ``LeaveNotificationContext``; the HTTP layer
hands it to the dispatchers below after a successful create/transition.
"""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from workforce.common.constants import NotificationType
from workforce.leave.schemas import LeaveNotificationContext
from workforce.leave.validator import format_days
from workforce.notifications.models import Notification


# ── Core service ────────────────────────────────────────────────────


class NotificationService:
    """Async notification operations."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        *,
        recipient_id: uuid.UUID,
        type: NotificationType = NotificationType.info,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[uuid.UUID] = None,
    ) -> Notification:
        """Create a new notification and flush to DB."""
        notification = Notification(
            recipient_id=recipient_id,
            type=type,
            title=title,
            message=message,
            action_url=action_url,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        db.add(notification)
        await db.flush()
        return notification


# ── Leave dispatchers ───────────────────────────────────────────────


def _describe(ctx: LeaveNotificationContext) -> str:
    if ctx.start_date == ctx.end_date:
        when = f"on {ctx.start_date}"
    else:
        when = f"from {ctx.start_date} to {ctx.end_date}"
    return f"{ctx.category_label} {when} ({format_days(ctx.total_days)} day(s), {ctx.duration_display})"


async def notify_leave_request(
    db: AsyncSession,
    ctx: LeaveNotificationContext,
) -> Optional[Notification]:
    """Ask the routed approver to review. Unroutable requests notify nobody."""
    if ctx.approver_id is None:
        return None
    return await NotificationService.create_notification(
        db,
        recipient_id=ctx.approver_id,
        type=NotificationType.action_required,
        title="New Leave Request",
        message=f"{ctx.requester_name} requested {_describe(ctx)}.",
        action_url=f"/leave/requests/{ctx.request_id}",
        entity_type="leave_request",
        entity_id=ctx.request_id,
    )


async def notify_leave_approved(
    db: AsyncSession,
    ctx: LeaveNotificationContext,
) -> Notification:
    """Notify the employee that their leave request was approved."""
    message = f"Your {_describe(ctx)} has been approved."
    if ctx.note:
        message += f" Note: {ctx.note}"
    return await NotificationService.create_notification(
        db,
        recipient_id=ctx.requester_id,
        type=NotificationType.approval,
        title="Leave Request Approved",
        message=message,
        action_url=f"/leave/requests/{ctx.request_id}",
        entity_type="leave_request",
        entity_id=ctx.request_id,
    )


async def notify_leave_rejected(
    db: AsyncSession,
    ctx: LeaveNotificationContext,
) -> Notification:
    """Notify the employee that their leave request was rejected."""
    message = f"Your {_describe(ctx)} has been rejected."
    if ctx.note:
        message += f" Reason: {ctx.note}"
    return await NotificationService.create_notification(
        db,
        recipient_id=ctx.requester_id,
        type=NotificationType.alert,
        title="Leave Request Rejected",
        message=message,
        action_url=f"/leave/requests/{ctx.request_id}",
        entity_type="leave_request",
        entity_id=ctx.request_id,
    )


async def notify_leave_cancelled(
    db: AsyncSession,
    ctx: LeaveNotificationContext,
) -> Optional[Notification]:
    """Tell the approver a request they were waiting on was withdrawn."""
    if ctx.approver_id is None:
        return None
    return await NotificationService.create_notification(
        db,
        recipient_id=ctx.approver_id,
        type=NotificationType.info,
        title="Leave Request Cancelled",
        message=f"{ctx.requester_name} cancelled their {_describe(ctx)}.",
        entity_type="leave_request",
        entity_id=ctx.request_id,
    )
