"""
SparkPro Studio Workflow - Notifications API
============================================

Inbox for notifications raised by workflow transitions. Users only ever
see and flip their own notifications.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, select, update

from sparkflow.api.deps import CurrentUser, DbSession
from sparkflow.core.models import Notification
from sparkflow.core.schemas import (
    MessageResponse,
    NotificationListResponse,
    NotificationResponse,
)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List my notifications",
    responses={
        200: {"description": "Notifications, newest first"},
        401: {"description": "Not authenticated"},
    },
)
async def list_notifications(
    current_user: CurrentUser,
    db: DbSession,
    unread_only: bool = Query(False, description="Only unread notifications"),
    limit: int = Query(50, ge=1, le=200),
) -> NotificationListResponse:
    query = select(Notification).where(Notification.user_id == current_user.id)
    if unread_only:
        query = query.where(Notification.read_flag.is_(False))

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    unread_result = await db.execute(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == current_user.id,
            Notification.read_flag.is_(False),
        )
    )
    unread = unread_result.scalar() or 0

    result = await db.execute(
        query.order_by(Notification.created_at.desc()).limit(limit)
    )

    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in result.scalars().all()],
        total=total,
        unread=unread,
    )


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification read",
    responses={
        200: {"description": "Notification marked read"},
        404: {"description": "Notification not found"},
    },
)
async def mark_read(
    notification_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> NotificationResponse:
    """Another user's notification is reported as not found."""
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == current_user.id,
        )
    )
    notification = result.scalar_one_or_none()

    if not notification:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )

    notification.read_flag = True
    await db.commit()

    return NotificationResponse.model_validate(notification)


@router.post(
    "/read-all",
    response_model=MessageResponse,
    summary="Mark all my notifications read",
)
async def mark_all_read(
    current_user: CurrentUser,
    db: DbSession,
) -> MessageResponse:
    result = await db.execute(
        update(Notification)
        .where(
            Notification.user_id == current_user.id,
            Notification.read_flag.is_(False),
        )
        .values(read_flag=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    return MessageResponse(message=f"Marked {result.rowcount} notifications as read")
