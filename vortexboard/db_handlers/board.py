from __future__ import annotations

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vortexboard.db_handlers.base import BaseDBHandler, check_local_db
from vortexboard.models import Attachment, Board, BoardCollaborator, Comment, Task
from vortexboard.utils.logger import setup_logger

logger = setup_logger("db_handlers.board")


def board_load_options() -> list:
    return [
        selectinload(Board.owner),
        selectinload(Board.collaborators).selectinload(BoardCollaborator.user),
    ]


def accessible_board_condition(user_id: str):
    """SQL condition matching boards the user owns or collaborates on."""
    collaborator_boards = select(BoardCollaborator.board_id).where(
        BoardCollaborator.user_id == user_id
    )
    return or_(Board.owner_id == user_id, Board.id.in_(collaborator_boards))


class BoardDBHandler(BaseDBHandler[Board]):
    def __init__(self):
        super().__init__(Board)

    @check_local_db
    async def get_board(self, board_id: str, *, db: AsyncSession = None) -> Board | None:
        """Get a board with its owner and ordered collaborators loaded."""
        stmt = (
            select(Board)
            .where(Board.id == board_id)
            .options(*board_load_options())
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @check_local_db
    async def get_accessible_boards(
        self,
        user_id: str,
        *,
        page: int = 1,
        limit: int = 10,
        db: AsyncSession = None,
    ) -> tuple[list[Board], int]:
        """Boards the user owns or collaborates on, newest first."""
        stmt = (
            select(Board)
            .where(accessible_board_condition(user_id))
            .options(*board_load_options())
            .order_by(Board.created_at.desc(), Board.id.desc())
        )
        return await self.paginate(stmt, page=page, limit=limit, db=db)

    @check_local_db
    async def get_accessible_board_ids(
        self, user_id: str, *, db: AsyncSession = None
    ) -> list[str]:
        result = await db.execute(
            select(Board.id).where(accessible_board_condition(user_id))
        )
        return list(result.scalars().all())

    @check_local_db
    async def create_board(
        self, owner_id: str, data: dict, *, db: AsyncSession = None
    ) -> Board:
        board = await self.create({**data, "owner_id": owner_id}, db=db)
        return await self.get_board(board.id, db=db)

    @check_local_db
    async def update_board(
        self, board: Board, data: dict, *, db: AsyncSession = None
    ) -> Board:
        await self.update(board, data, db=db)
        return await self.get_board(board.id, db=db)

    @check_local_db
    async def add_collaborator(
        self,
        board: Board,
        user_id: str,
        permission: str = "read",
        *,
        db: AsyncSession = None,
    ) -> Board:
        """Append a collaborator at the end of the board's collaborator list."""
        max_position = (
            await db.execute(
                select(func.max(BoardCollaborator.position)).where(
                    BoardCollaborator.board_id == board.id
                )
            )
        ).scalar_one_or_none()
        position = 0 if max_position is None else max_position + 1

        db.add(
            BoardCollaborator(
                board_id=board.id,
                user_id=user_id,
                permission=permission,
                position=position,
            )
        )
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                f"Error adding collaborator {user_id} to board {board.id}: {e}",
                exc_info=True,
            )
            raise
        return await self.get_board(board.id, db=db)

    @check_local_db
    async def remove_collaborator(
        self, board: Board, user_id: str, *, db: AsyncSession = None
    ) -> Board:
        """Remove a collaborator. Removing a user who is not listed is a no-op."""
        await db.execute(
            delete(BoardCollaborator).where(
                BoardCollaborator.board_id == board.id,
                BoardCollaborator.user_id == user_id,
            )
        )
        await db.commit()
        return await self.get_board(board.id, db=db)

    @check_local_db
    async def delete_board_cascade(
        self, board_id: str, *, db: AsyncSession = None
    ) -> int:
        """
        Delete a board together with its tasks and their comments and
        attachment records. Returns the number of tasks removed.

        Stored attachment files are not touched here; callers remove them
        after the rows are gone.
        """
        task_ids = select(Task.id).where(Task.board_id == board_id)
        try:
            await db.execute(delete(Comment).where(Comment.task_id.in_(task_ids)))
            await db.execute(
                delete(Attachment).where(Attachment.task_id.in_(task_ids))
            )
            task_result = await db.execute(delete(Task).where(Task.board_id == board_id))
            await db.execute(
                delete(BoardCollaborator).where(BoardCollaborator.board_id == board_id)
            )
            await db.execute(delete(Board).where(Board.id == board_id))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error deleting board {board_id}: {e}", exc_info=True)
            raise
        return task_result.rowcount or 0

    @check_local_db
    async def get_attachment_paths_for_board(
        self, board_id: str, *, db: AsyncSession = None
    ) -> list[str]:
        stmt = (
            select(Attachment.path)
            .join(Task, Attachment.task_id == Task.id)
            .where(Task.board_id == board_id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
