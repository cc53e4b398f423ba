"""
Path-resource dependencies: validate the id, load the entity, 404 if absent.

Access checks that differ per operation (read vs edit vs owner) are made by
the routes themselves with the predicates in vortexboard.services.access.
"""

from dataclasses import dataclass

from fastapi import Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from vortexboard.db import get_app_db
from vortexboard.db_handlers.board import BoardDBHandler
from vortexboard.db_handlers.comment import CommentDBHandler
from vortexboard.db_handlers.task import TaskDBHandler
from vortexboard.dependencies.auth import get_current_user
from vortexboard.errors import AuthorizationError, NotFoundError, ValidationError
from vortexboard.models import Board, Comment, Task, User
from vortexboard.services.access import has_access
from vortexboard.utils.object_id import is_valid_object_id


def ensure_object_id(value: str) -> str:
    """Reject malformed ids before any lookup."""
    if not is_valid_object_id(value):
        raise ValidationError("Invalid ID format")
    return value.lower()


@dataclass
class TaskContext:
    task: Task
    board: Board


async def get_board(
    board_id: str = Path(..., description="Board id"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
) -> Board:
    board = await BoardDBHandler().get_board(ensure_object_id(board_id), db=db)
    if board is None:
        raise NotFoundError("Board not found")
    return board


async def get_accessible_board(
    board: Board = Depends(get_board),
    current_user: User = Depends(get_current_user),
) -> Board:
    if not has_access(board, current_user.id):
        raise AuthorizationError("Not authorized to access this board")
    return board


async def load_task_context(task_id: str, db: AsyncSession) -> TaskContext:
    task = await TaskDBHandler().get_task(ensure_object_id(task_id), db=db)
    if task is None:
        raise NotFoundError("Task not found")
    board = await BoardDBHandler().get_board(task.board_id, db=db)
    if board is None:
        raise NotFoundError("Board not found")
    return TaskContext(task=task, board=board)


async def get_task_context(
    task_id: str = Path(..., description="Task id"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
) -> TaskContext:
    return await load_task_context(task_id, db)


async def get_accessible_task(
    context: TaskContext = Depends(get_task_context),
    current_user: User = Depends(get_current_user),
) -> TaskContext:
    if not has_access(context.board, current_user.id):
        raise AuthorizationError("Not authorized to access this task")
    return context


async def get_comment(
    comment_id: str = Path(..., description="Comment id"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
) -> Comment:
    comment = await CommentDBHandler().get_comment(ensure_object_id(comment_id), db=db)
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment
