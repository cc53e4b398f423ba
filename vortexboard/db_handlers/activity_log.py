from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vortexboard.db_handlers.base import BaseDBHandler, check_local_db
from vortexboard.models import ActivityLog


class ActivityLogDBHandler(BaseDBHandler[ActivityLog]):
    def __init__(self):
        super().__init__(ActivityLog)

    @check_local_db
    async def get_user_activity(
        self,
        user_id: str,
        *,
        since: datetime | None = None,
        limit: int = 50,
        db: AsyncSession = None,
    ) -> list[ActivityLog]:
        """A user's own activity entries, newest first."""
        stmt = select(ActivityLog).where(ActivityLog.user_id == user_id)
        if since is not None:
            stmt = stmt.where(ActivityLog.timestamp >= since)
        stmt = stmt.order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc()).limit(
            limit
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @check_local_db
    async def get_entity_activity(
        self,
        entity_type: str,
        entity_id: str,
        *,
        limit: int = 20,
        db: AsyncSession = None,
    ) -> list[ActivityLog]:
        """Entries recorded against one entity, newest first, with the actor loaded."""
        stmt = (
            select(ActivityLog)
            .where(
                ActivityLog.entity_type == entity_type,
                ActivityLog.entity_id == entity_id,
            )
            .options(selectinload(ActivityLog.user))
            .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
