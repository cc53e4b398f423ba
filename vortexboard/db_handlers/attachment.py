from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vortexboard.db_handlers.base import BaseDBHandler, check_local_db
from vortexboard.models import Attachment


class AttachmentDBHandler(BaseDBHandler[Attachment]):
    def __init__(self):
        super().__init__(Attachment)

    @check_local_db
    async def get_attachment(
        self, attachment_id: str, *, db: AsyncSession = None
    ) -> Attachment | None:
        return await self.get(
            attachment_id, db=db, options=[selectinload(Attachment.uploaded_by)]
        )

    @check_local_db
    async def list_task_attachments(
        self, task_id: str, *, db: AsyncSession = None
    ) -> list[Attachment]:
        """Attachments of a task, newest first."""
        return await self.get_multi_by_attributes(
            db=db,
            limit=None,
            task_id=task_id,
            options=[selectinload(Attachment.uploaded_by)],
            order_by=[Attachment.created_at.desc(), Attachment.id.desc()],
        )

    @check_local_db
    async def create_attachment(
        self, data: dict, *, db: AsyncSession = None
    ) -> Attachment:
        attachment = await self.create(data, db=db)
        return await self.get_attachment(attachment.id, db=db)
