"""
Comment API routes with single-level threading and @mentions.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from vortexboard.db import get_app_db
from vortexboard.db_handlers.comment import CommentDBHandler
from vortexboard.db_handlers.user import UserDBHandler
from vortexboard.dependencies.auth import get_current_user
from vortexboard.dependencies.resources import (
    TaskContext,
    get_accessible_task,
    get_comment,
    load_task_context,
)
from vortexboard.dependencies.services import get_notification_service
from vortexboard.errors import AuthorizationError, NotFoundError, ValidationError
from vortexboard.models import Comment, User
from vortexboard.models.base import utc_now
from vortexboard.schemas import (
    CommentCreate,
    CommentListResponse,
    CommentOut,
    CommentResponse,
    CommentUpdate,
    MessageResponse,
)
from vortexboard.services.access import is_owner
from vortexboard.services.activity import log_activity
from vortexboard.services.notifications import NotificationService
from vortexboard.utils.logger import setup_logger

logger = setup_logger("api.comments")

task_comments_router = APIRouter(prefix="/api/tasks/{task_id}/comments", tags=["Comments"])
router = APIRouter(prefix="/api/comments", tags=["Comments"])


def build_threads(comments: list[Comment]) -> list[CommentOut]:
    """Nest replies under their parents. Top-level comments keep input order."""
    threads: dict[str, CommentOut] = {}
    replies: list[Comment] = []
    for comment in comments:
        if comment.parent_comment_id:
            replies.append(comment)
        else:
            threads[comment.id] = CommentOut.model_validate(comment)
    for reply in replies:
        parent = threads.get(reply.parent_comment_id)
        if parent is not None:
            parent.replies.append(CommentOut.model_validate(reply))
    return list(threads.values())


@task_comments_router.get("", response_model=CommentListResponse)
async def list_comments(
    context: TaskContext = Depends(get_accessible_task),
    db: AsyncSession = Depends(get_app_db),
    comment_db_handler: CommentDBHandler = Depends(),
):
    comments = await comment_db_handler.list_task_comments(context.task.id, db=db)
    threads = build_threads(comments)
    return CommentListResponse(count=len(comments), comments=threads)


@task_comments_router.post(
    "", response_model=CommentResponse, status_code=status.HTTP_201_CREATED
)
async def create_comment(
    comment_data: CommentCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    context: TaskContext = Depends(get_accessible_task),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    comment_db_handler: CommentDBHandler = Depends(),
    user_db_handler: UserDBHandler = Depends(),
    notifier: NotificationService = Depends(get_notification_service),
):
    """Comment on a task. Any board participant may comment."""
    task = context.task

    if comment_data.parent_comment_id:
        parent = await comment_db_handler.get(comment_data.parent_comment_id, db=db)
        if parent is None:
            raise NotFoundError("Parent comment not found")
        if parent.task_id != task.id:
            raise ValidationError("Parent comment belongs to a different task")
        if parent.parent_comment_id:
            raise ValidationError("Replies cannot be nested more than one level")

    comment = await comment_db_handler.create_comment(
        {
            "content": comment_data.content,
            "task_id": task.id,
            "author_id": current_user.id,
            "parent_comment_id": comment_data.parent_comment_id,
        },
        db=db,
    )
    mentioned_users = await user_db_handler.get_users_by_ids(comment.mentions, db=db)
    order = {user_id: index for index, user_id in enumerate(comment.mentions)}
    mentioned_users.sort(key=lambda user: order[user.id])

    log_activity(
        background_tasks,
        request,
        current_user.id,
        "comment.create",
        "comment",
        comment.id,
        task_id=task.id,
        mentions=len(comment.mentions),
    )
    background_tasks.add_task(
        notifier.comment_added, comment, task, current_user, mentioned_users
    )
    return CommentResponse(comment=CommentOut.model_validate(comment))


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_data: CommentUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    comment: Comment = Depends(get_comment),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    comment_db_handler: CommentDBHandler = Depends(),
):
    """Edit a comment. Only its author may do so; mentions are re-derived."""
    if comment.author_id != current_user.id:
        raise AuthorizationError("Not authorized to edit this comment")

    comment = await comment_db_handler.update_comment(
        comment,
        {"content": comment_data.content, "is_edited": True, "edited_at": utc_now()},
        db=db,
    )
    log_activity(
        background_tasks,
        request,
        current_user.id,
        "task.update",
        "task",
        comment.task_id,
        comment_id=comment.id,
        comment_edited=True,
    )
    return CommentResponse(comment=CommentOut.model_validate(comment))


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    request: Request,
    background_tasks: BackgroundTasks,
    comment: Comment = Depends(get_comment),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    comment_db_handler: CommentDBHandler = Depends(),
):
    """Delete a comment and its replies. Allowed for the author or the board owner."""
    context = await load_task_context(comment.task_id, db)
    is_author = comment.author_id == current_user.id
    if not is_author and not is_owner(context.board, current_user.id):
        raise AuthorizationError("Not authorized to delete this comment")

    comment_id, task_id = comment.id, comment.task_id
    removed = await comment_db_handler.delete_thread(comment_id, db=db)
    logger.info(f"Comment {comment_id} deleted with {removed - 1} replies")
    log_activity(
        background_tasks,
        request,
        current_user.id,
        "comment.delete",
        "comment",
        comment_id,
        task_id=task_id,
    )
    return MessageResponse(message="Comment deleted")
