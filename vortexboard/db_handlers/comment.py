from __future__ import annotations

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vortexboard.db_handlers.base import BaseDBHandler, check_local_db
from vortexboard.models import Comment
from vortexboard.utils.logger import setup_logger

logger = setup_logger("db_handlers.comment")


class CommentDBHandler(BaseDBHandler[Comment]):
    def __init__(self):
        super().__init__(Comment)

    @check_local_db
    async def get_comment(
        self, comment_id: str, *, db: AsyncSession = None
    ) -> Comment | None:
        stmt = (
            select(Comment)
            .where(Comment.id == comment_id)
            .options(selectinload(Comment.author))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @check_local_db
    async def list_task_comments(
        self, task_id: str, *, db: AsyncSession = None
    ) -> list[Comment]:
        """All comments of a task, replies included, oldest first."""
        return await self.get_multi_by_attributes(
            db=db,
            limit=None,
            task_id=task_id,
            options=[selectinload(Comment.author)],
            order_by=[Comment.created_at.asc(), Comment.id.asc()],
        )

    @check_local_db
    async def create_comment(self, data: dict, *, db: AsyncSession = None) -> Comment:
        comment = await self.create(data, db=db)
        return await self.get_comment(comment.id, db=db)

    @check_local_db
    async def update_comment(
        self, comment: Comment, data: dict, *, db: AsyncSession = None
    ) -> Comment:
        await self.update(comment, data, db=db)
        return await self.get_comment(comment.id, db=db)

    @check_local_db
    async def delete_thread(self, comment_id: str, *, db: AsyncSession = None) -> int:
        """Delete a comment and its replies. Returns the number of rows removed."""
        try:
            result = await db.execute(
                delete(Comment).where(
                    or_(Comment.id == comment_id, Comment.parent_comment_id == comment_id)
                )
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error deleting comment {comment_id}: {e}", exc_info=True)
            raise
        return result.rowcount or 0
