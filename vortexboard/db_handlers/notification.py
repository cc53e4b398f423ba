from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vortexboard.db_handlers.base import BaseDBHandler, check_local_db
from vortexboard.models import Notification
from vortexboard.models.base import utc_now
from vortexboard.utils.logger import setup_logger

logger = setup_logger("db_handlers.notification")


class NotificationDBHandler(BaseDBHandler[Notification]):
    def __init__(self):
        super().__init__(Notification)

    @check_local_db
    async def list_for_recipient(
        self,
        recipient_id: str,
        *,
        unread_only: bool = False,
        page: int = 1,
        limit: int = 20,
        db: AsyncSession = None,
    ) -> tuple[list[Notification], int]:
        """A recipient's notifications, newest first."""
        stmt = select(Notification).where(Notification.recipient_id == recipient_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.options(selectinload(Notification.sender)).order_by(
            Notification.created_at.desc(), Notification.id.desc()
        )
        return await self.paginate(stmt, page=page, limit=limit, db=db)

    @check_local_db
    async def unread_count(self, recipient_id: str, *, db: AsyncSession = None) -> int:
        return await self.count(
            Notification.recipient_id == recipient_id,
            Notification.is_read.is_(False),
            db=db,
        )

    @check_local_db
    async def get_for_recipient(
        self, notification_id: str, recipient_id: str, *, db: AsyncSession = None
    ) -> Notification | None:
        """A notification only if it belongs to the recipient."""
        return await self.get_by_attributes(
            db=db,
            id=notification_id,
            recipient_id=recipient_id,
            options=[selectinload(Notification.sender)],
        )

    @check_local_db
    async def mark_read(
        self, notification: Notification, *, db: AsyncSession = None
    ) -> Notification:
        if notification.mark_as_read():
            db.add(notification)
            await db.commit()
        return notification

    @check_local_db
    async def mark_all_read(self, recipient_id: str, *, db: AsyncSession = None) -> int:
        """Mark every unread notification of the recipient as read. Returns how many changed."""
        result = await db.execute(
            update(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=utc_now(), updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        logger.debug(f"Marked {result.rowcount} notifications read for {recipient_id}")
        return result.rowcount or 0

    @check_local_db
    async def exists_for(
        self,
        recipient_id: str,
        notification_type: str,
        entity_id: str,
        *,
        db: AsyncSession = None,
    ) -> bool:
        """Whether the recipient already has a notification of this type for the entity."""
        stmt = select(func.count()).select_from(Notification).where(
            Notification.recipient_id == recipient_id,
            Notification.type == notification_type,
            Notification.entity_id == entity_id,
        )
        return (await db.execute(stmt)).scalar_one() > 0
