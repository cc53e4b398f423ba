"""
Board API routes: CRUD, collaborator management and board activity.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from vortexboard.db import get_app_db
from vortexboard.db_handlers.activity_log import ActivityLogDBHandler
from vortexboard.db_handlers.board import BoardDBHandler
from vortexboard.db_handlers.user import UserDBHandler
from vortexboard.dependencies.auth import get_current_user
from vortexboard.dependencies.resources import (
    ensure_object_id,
    get_accessible_board,
    get_board,
)
from vortexboard.dependencies.services import get_notification_service
from vortexboard.errors import AuthorizationError, NotFoundError, ValidationError
from vortexboard.models import Board, User
from vortexboard.schemas import (
    ActivityListResponse,
    ActivityOut,
    BoardCreate,
    BoardListResponse,
    BoardOut,
    BoardResponse,
    BoardUpdate,
    CollaboratorAdd,
    MessageResponse,
    total_pages,
)
from vortexboard.services.access import can_edit, is_owner, permission_map
from vortexboard.services.activity import log_activity
from vortexboard.services.notifications import NotificationService
from vortexboard.services.storage import remove_stored_file
from vortexboard.utils.logger import setup_logger

logger = setup_logger("api.boards")

router = APIRouter(prefix="/api/boards", tags=["Boards"])


@router.get("", response_model=BoardListResponse)
async def list_boards(
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(10, ge=1, le=100, description="Boards per page"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    board_db_handler: BoardDBHandler = Depends(),
):
    """Boards the caller owns or collaborates on, newest first."""
    boards, total = await board_db_handler.get_accessible_boards(
        current_user.id, page=page, limit=limit, db=db
    )
    return BoardListResponse(
        count=len(boards),
        total=total,
        total_pages=total_pages(total, limit),
        current_page=page,
        boards=[BoardOut.model_validate(board) for board in boards],
    )


@router.post("", response_model=BoardResponse, status_code=status.HTTP_201_CREATED)
async def create_board(
    board_data: BoardCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    board_db_handler: BoardDBHandler = Depends(),
):
    board = await board_db_handler.create_board(
        current_user.id, board_data.model_dump(exclude_none=True), db=db
    )
    logger.info(f"Board created: {board.name} by user {current_user.email}")
    log_activity(
        background_tasks,
        request,
        current_user.id,
        "board.create",
        "board",
        board.id,
        name=board.name,
    )
    return BoardResponse(board=BoardOut.model_validate(board))


@router.get("/{board_id}", response_model=BoardResponse)
async def get_board_detail(board: Board = Depends(get_accessible_board)):
    return BoardResponse(board=BoardOut.model_validate(board))


@router.put("/{board_id}", response_model=BoardResponse)
async def update_board(
    board_data: BoardUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    board: Board = Depends(get_board),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    board_db_handler: BoardDBHandler = Depends(),
):
    if not can_edit(board, current_user.id):
        raise AuthorizationError("Not authorized to update this board")

    update_data = board_data.model_dump(exclude_unset=True)
    if "name" in update_data and update_data["name"] is None:
        del update_data["name"]
    if "color" in update_data and update_data["color"] is None:
        del update_data["color"]

    board = await board_db_handler.update_board(board, update_data, db=db)
    logger.info(f"Board updated: {board.name} by user {current_user.email}")
    log_activity(
        background_tasks,
        request,
        current_user.id,
        "board.update",
        "board",
        board.id,
        fields=sorted(update_data),
    )
    return BoardResponse(board=BoardOut.model_validate(board))


@router.delete("/{board_id}", response_model=MessageResponse)
async def delete_board(
    request: Request,
    background_tasks: BackgroundTasks,
    board: Board = Depends(get_board),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    board_db_handler: BoardDBHandler = Depends(),
):
    """Delete a board with all of its tasks, comments and attachments. Owner only."""
    if not is_owner(board, current_user.id):
        raise AuthorizationError("Not authorized to delete this board")

    board_id, board_name = board.id, board.name
    attachment_paths = await board_db_handler.get_attachment_paths_for_board(
        board_id, db=db
    )
    removed_tasks = await board_db_handler.delete_board_cascade(board_id, db=db)
    for path in attachment_paths:
        remove_stored_file(path)

    logger.info(
        f"Board deleted: {board_name} ({removed_tasks} tasks) by user {current_user.email}"
    )
    log_activity(
        background_tasks,
        request,
        current_user.id,
        "board.delete",
        "board",
        board_id,
        name=board_name,
        tasks_removed=removed_tasks,
    )
    return MessageResponse(message="Board and associated tasks deleted")


@router.post("/{board_id}/collaborators", response_model=BoardResponse)
async def add_collaborator(
    collaborator: CollaboratorAdd,
    request: Request,
    background_tasks: BackgroundTasks,
    board: Board = Depends(get_board),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    board_db_handler: BoardDBHandler = Depends(),
    user_db_handler: UserDBHandler = Depends(),
    notifier: NotificationService = Depends(get_notification_service),
):
    """Share the board with another user. Owner only."""
    if not is_owner(board, current_user.id):
        raise AuthorizationError("Not authorized to add collaborators")

    if collaborator.user_id == board.owner_id:
        raise ValidationError("Board owner cannot be added as a collaborator")
    if collaborator.user_id in permission_map(board):
        raise ValidationError("User is already a collaborator")

    user = await user_db_handler.get(collaborator.user_id, db=db)
    if user is None:
        raise NotFoundError("User not found")

    board = await board_db_handler.add_collaborator(
        board, user.id, collaborator.permission, db=db
    )
    logger.info(f"Collaborator {user.email} added to board: {board.name}")

    log_activity(
        background_tasks,
        request,
        current_user.id,
        "board.share",
        "board",
        board.id,
        collaborator_id=user.id,
        permission=collaborator.permission,
    )
    background_tasks.add_task(
        notifier.board_shared, board, user, current_user, collaborator.permission
    )
    return BoardResponse(board=BoardOut.model_validate(board))


@router.delete("/{board_id}/collaborators/{user_id}", response_model=BoardResponse)
async def remove_collaborator(
    user_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    board: Board = Depends(get_board),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    board_db_handler: BoardDBHandler = Depends(),
):
    """Revoke a collaborator's access. Owner only."""
    if not is_owner(board, current_user.id):
        raise AuthorizationError("Not authorized to remove collaborators")

    user_id = ensure_object_id(user_id)
    board = await board_db_handler.remove_collaborator(board, user_id, db=db)
    logger.info(f"Collaborator {user_id} removed from board: {board.name}")
    log_activity(
        background_tasks,
        request,
        current_user.id,
        "board.share",
        "board",
        board.id,
        removed_collaborator_id=user_id,
    )
    return BoardResponse(board=BoardOut.model_validate(board))


@router.get("/{board_id}/activity", response_model=ActivityListResponse)
async def get_board_activity(
    limit: int = Query(20, ge=1, le=100),
    board: Board = Depends(get_accessible_board),
    db: AsyncSession = Depends(get_app_db),
    activity_db_handler: ActivityLogDBHandler = Depends(),
):
    entries = await activity_db_handler.get_entity_activity(
        "board", board.id, limit=limit, db=db
    )
    return ActivityListResponse(
        count=len(entries),
        activities=[ActivityOut.model_validate(entry) for entry in entries],
    )
