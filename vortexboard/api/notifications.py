"""
Notification inbox routes. Every route is scoped to the caller's own notifications.
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vortexboard.db import get_app_db
from vortexboard.db_handlers.notification import NotificationDBHandler
from vortexboard.dependencies.auth import get_current_user
from vortexboard.dependencies.resources import ensure_object_id
from vortexboard.errors import NotFoundError
from vortexboard.models import Notification, User
from vortexboard.schemas import (
    MarkAllReadResponse,
    MessageResponse,
    NotificationListResponse,
    NotificationOut,
    NotificationResponse,
    UnreadCountResponse,
    total_pages,
)
from vortexboard.utils.logger import setup_logger

logger = setup_logger("api.notifications")

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


async def get_own_notification(
    notification_id: str = Path(..., description="Notification id"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
) -> Notification:
    # Another user's notification is reported as missing.
    notification = await NotificationDBHandler().get_for_recipient(
        ensure_object_id(notification_id), current_user.id, db=db
    )
    if notification is None:
        raise NotFoundError("Notification not found")
    return notification


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False, description="Only return unread notifications"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    notification_db_handler: NotificationDBHandler = Depends(),
):
    notifications, total = await notification_db_handler.list_for_recipient(
        current_user.id, unread_only=unread_only, page=page, limit=limit, db=db
    )
    unread = await notification_db_handler.unread_count(current_user.id, db=db)
    return NotificationListResponse(
        count=len(notifications),
        total=total,
        total_pages=total_pages(total, limit),
        current_page=page,
        unread_count=unread,
        notifications=[NotificationOut.model_validate(n) for n in notifications],
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    notification_db_handler: NotificationDBHandler = Depends(),
):
    count = await notification_db_handler.unread_count(current_user.id, db=db)
    return UnreadCountResponse(count=count)


@router.put("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    notification_db_handler: NotificationDBHandler = Depends(),
):
    modified = await notification_db_handler.mark_all_read(current_user.id, db=db)
    logger.info(f"Marked {modified} notifications read for user {current_user.email}")
    return MarkAllReadResponse(
        message="All notifications marked as read", modified=modified
    )


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification: Notification = Depends(get_own_notification),
    db: AsyncSession = Depends(get_app_db),
    notification_db_handler: NotificationDBHandler = Depends(),
):
    notification = await notification_db_handler.mark_read(notification, db=db)
    return NotificationResponse(
        notification=NotificationOut.model_validate(notification)
    )


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification: Notification = Depends(get_own_notification),
    db: AsyncSession = Depends(get_app_db),
    notification_db_handler: NotificationDBHandler = Depends(),
):
    await notification_db_handler.remove(notification.id, db=db)
    return MessageResponse(message="Notification deleted")
