"""
Task API routes.

Board-scoped listing and creation live under /api/boards/{board_id}/tasks;
single-task operations under /api/tasks/{task_id}.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from vortexboard.db import get_app_db
from vortexboard.db_handlers.task import SORTABLE_TASK_FIELDS, TaskDBHandler, sort_field
from vortexboard.db_handlers.user import UserDBHandler
from vortexboard.dependencies.auth import get_current_user
from vortexboard.dependencies.resources import (
    TaskContext,
    get_accessible_board,
    get_accessible_task,
    get_board,
    get_task_context,
)
from vortexboard.dependencies.services import get_notification_service
from vortexboard.errors import AuthorizationError, ValidationError
from vortexboard.models import Board, Task, User
from vortexboard.models.base import utc_now
from vortexboard.models.task import TASK_PRIORITIES, TASK_STATUSES
from vortexboard.schemas import (
    MessageResponse,
    TaskCreate,
    TaskListResponse,
    TaskOut,
    TaskResponse,
    TaskUpdate,
    total_pages,
)
from vortexboard.services.access import can_edit
from vortexboard.services.activity import log_activity
from vortexboard.services.notifications import NotificationService
from vortexboard.services.storage import remove_stored_file
from vortexboard.utils.logger import setup_logger

logger = setup_logger("api.tasks")

board_tasks_router = APIRouter(prefix="/api/boards/{board_id}/tasks", tags=["Tasks"])
router = APIRouter(prefix="/api/tasks", tags=["Tasks"])

NON_NULLABLE_FIELDS = ("title", "status", "priority", "tags", "position")


def _choice_error(value: str | None, allowed, label: str) -> str | None:
    if value is not None and value not in allowed:
        return f"{label} must be one of: {', '.join(allowed)}"
    return None


async def _resolve_assignee(
    user_id: str | None, user_db_handler: UserDBHandler, db: AsyncSession
) -> User | None:
    if user_id is None:
        return None
    assignee = await user_db_handler.get(user_id, db=db)
    if assignee is None:
        raise ValidationError("Assigned user does not exist")
    return assignee


@board_tasks_router.get("", response_model=TaskListResponse)
async def list_tasks(
    status_filter: str | None = Query(None, alias="status"),
    priority: str | None = Query(None),
    search: str | None = Query(None, description="Matches title, description or tags"),
    sort: str = Query("position", description="Field to sort by; prefix '-' for descending"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    board: Board = Depends(get_accessible_board),
    db: AsyncSession = Depends(get_app_db),
    task_db_handler: TaskDBHandler = Depends(),
):
    errors = [
        error
        for error in (
            _choice_error(status_filter, TASK_STATUSES, "Status"),
            _choice_error(priority, TASK_PRIORITIES, "Priority"),
            _choice_error(sort_field(sort), SORTABLE_TASK_FIELDS, "Sort field"),
        )
        if error
    ]
    if errors:
        raise ValidationError(errors)

    tasks, total = await task_db_handler.list_board_tasks(
        board.id,
        status=status_filter,
        priority=priority,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
        db=db,
    )
    return TaskListResponse(
        count=len(tasks),
        total=total,
        total_pages=total_pages(total, limit),
        current_page=page,
        tasks=[TaskOut.model_validate(task) for task in tasks],
    )


@board_tasks_router.post(
    "", response_model=TaskResponse, status_code=status.HTTP_201_CREATED
)
async def create_task(
    task_data: TaskCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    board: Board = Depends(get_board),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    task_db_handler: TaskDBHandler = Depends(),
    user_db_handler: UserDBHandler = Depends(),
    notifier: NotificationService = Depends(get_notification_service),
):
    if not can_edit(board, current_user.id):
        raise AuthorizationError("Not authorized to create tasks in this board")

    assignee = await _resolve_assignee(task_data.assigned_to, user_db_handler, db)
    data = task_data.model_dump(exclude_none=True, exclude={"assigned_to"})
    data.update(
        board_id=board.id,
        created_by_id=current_user.id,
        assigned_to_id=assignee.id if assignee else None,
    )
    if data.get("status") == "done":
        data["completed_at"] = utc_now()

    task = await task_db_handler.create_task(data, db=db)
    logger.info(f"Task created: {task.title} in board {board.name}")

    log_activity(
        background_tasks,
        request,
        current_user.id,
        "task.create",
        "task",
        task.id,
        board_id=board.id,
        title=task.title,
    )
    if assignee:
        background_tasks.add_task(notifier.task_assigned, task, assignee, current_user)
    return TaskResponse(task=TaskOut.model_validate(task))


@board_tasks_router.get("/status/{task_status}", response_model=TaskListResponse)
async def get_tasks_by_status(
    task_status: str,
    board: Board = Depends(get_accessible_board),
    db: AsyncSession = Depends(get_app_db),
    task_db_handler: TaskDBHandler = Depends(),
):
    error = _choice_error(task_status, TASK_STATUSES, "Status")
    if error:
        raise ValidationError(error)
    tasks = await task_db_handler.get_tasks_by_status(board.id, task_status, db=db)
    return TaskListResponse(
        count=len(tasks), tasks=[TaskOut.model_validate(task) for task in tasks]
    )


@board_tasks_router.get("/overdue", response_model=TaskListResponse)
async def get_overdue_tasks(
    board: Board = Depends(get_accessible_board),
    db: AsyncSession = Depends(get_app_db),
    task_db_handler: TaskDBHandler = Depends(),
):
    tasks = await task_db_handler.get_overdue_tasks(board.id, utc_now(), db=db)
    return TaskListResponse(
        count=len(tasks), tasks=[TaskOut.model_validate(task) for task in tasks]
    )


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(context: TaskContext = Depends(get_accessible_task)):
    return TaskResponse(task=TaskOut.model_validate(context.task))


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_data: TaskUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    context: TaskContext = Depends(get_task_context),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    task_db_handler: TaskDBHandler = Depends(),
    user_db_handler: UserDBHandler = Depends(),
    notifier: NotificationService = Depends(get_notification_service),
):
    task: Task = context.task
    if not can_edit(context.board, current_user.id):
        raise AuthorizationError("Not authorized to update this task")

    update_data = task_data.model_dump(exclude_unset=True)
    for field in NON_NULLABLE_FIELDS:
        if field in update_data and update_data[field] is None:
            del update_data[field]

    previous_status = task.status
    previous_assignee_id = task.assigned_to_id

    new_assignee = None
    if "assigned_to" in update_data:
        new_assignee = await _resolve_assignee(
            update_data.pop("assigned_to"), user_db_handler, db
        )
        update_data["assigned_to_id"] = new_assignee.id if new_assignee else None

    new_status = update_data.get("status", previous_status)
    if new_status == "done" and previous_status != "done":
        update_data["completed_at"] = utc_now()
    elif new_status != "done" and previous_status == "done":
        update_data["completed_at"] = None

    task = await task_db_handler.update_task(task, update_data, db=db)
    logger.info(f"Task updated: {task.title}")

    assigned = new_assignee is not None and new_assignee.id != previous_assignee_id
    completed = task.status == "done" and previous_status != "done"

    if completed:
        action = "task.complete"
        background_tasks.add_task(notifier.task_completed, task, current_user)
    elif assigned:
        action = "task.assign"
    else:
        action = "task.update"
        background_tasks.add_task(notifier.task_updated, task, current_user)
    if assigned:
        background_tasks.add_task(
            notifier.task_assigned, task, new_assignee, current_user
        )

    log_activity(
        background_tasks,
        request,
        current_user.id,
        action,
        "task",
        task.id,
        board_id=task.board_id,
        fields=sorted(update_data),
    )
    return TaskResponse(task=TaskOut.model_validate(task))


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    request: Request,
    background_tasks: BackgroundTasks,
    context: TaskContext = Depends(get_task_context),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    task_db_handler: TaskDBHandler = Depends(),
):
    task = context.task
    if not can_edit(context.board, current_user.id):
        raise AuthorizationError("Not authorized to delete this task")

    task_id, title, board_id = task.id, task.title, task.board_id
    for path in await task_db_handler.delete_task(task_id, db=db):
        remove_stored_file(path)

    logger.info(f"Task deleted: {title}")
    log_activity(
        background_tasks,
        request,
        current_user.id,
        "task.delete",
        "task",
        task_id,
        board_id=board_id,
        title=title,
    )
    return MessageResponse(message="Task deleted")
