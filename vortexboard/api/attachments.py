"""
Attachment API routes: upload, list, download and delete task files.
"""

import os

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Path,
    Request,
    UploadFile,
    status,
)
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from vortexboard.db import get_app_db
from vortexboard.db_handlers.attachment import AttachmentDBHandler
from vortexboard.dependencies.auth import get_current_user
from vortexboard.dependencies.resources import (
    TaskContext,
    ensure_object_id,
    get_accessible_task,
    get_task_context,
    load_task_context,
)
from vortexboard.errors import AuthorizationError, NotFoundError
from vortexboard.models import Attachment, User
from vortexboard.schemas import (
    AttachmentListResponse,
    AttachmentOut,
    AttachmentResponse,
    MessageResponse,
)
from vortexboard.services.access import can_edit, has_access
from vortexboard.services.activity import log_activity
from vortexboard.services.storage import remove_stored_file, save_upload
from vortexboard.utils.logger import setup_logger

logger = setup_logger("api.attachments")

task_attachments_router = APIRouter(
    prefix="/api/tasks/{task_id}/attachments", tags=["Attachments"]
)
router = APIRouter(prefix="/api/attachments", tags=["Attachments"])

DEFAULT_MIME_TYPE = "application/octet-stream"


async def get_attachment(
    attachment_id: str = Path(..., description="Attachment id"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
) -> Attachment:
    attachment = await AttachmentDBHandler().get_attachment(
        ensure_object_id(attachment_id), db=db
    )
    if attachment is None:
        raise NotFoundError("Attachment not found")
    return attachment


@task_attachments_router.get("", response_model=AttachmentListResponse)
async def list_attachments(
    context: TaskContext = Depends(get_accessible_task),
    db: AsyncSession = Depends(get_app_db),
    attachment_db_handler: AttachmentDBHandler = Depends(),
):
    attachments = await attachment_db_handler.list_task_attachments(
        context.task.id, db=db
    )
    return AttachmentListResponse(
        count=len(attachments),
        attachments=[AttachmentOut.model_validate(a) for a in attachments],
    )


@task_attachments_router.post(
    "", response_model=AttachmentResponse, status_code=status.HTTP_201_CREATED
)
async def upload_attachment(
    request: Request,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="File to attach"),
    context: TaskContext = Depends(get_task_context),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    attachment_db_handler: AttachmentDBHandler = Depends(),
):
    """Attach a file to a task. Requires edit permission on the task's board."""
    if not can_edit(context.board, current_user.id):
        raise AuthorizationError("Not authorized to upload files to this task")

    stored = await save_upload(file)
    try:
        attachment = await attachment_db_handler.create_attachment(
            {
                "filename": stored.filename,
                "original_name": file.filename,
                "mime_type": file.content_type or DEFAULT_MIME_TYPE,
                "size": stored.size,
                "path": stored.path,
                "task_id": context.task.id,
                "uploaded_by_id": current_user.id,
            },
            db=db,
        )
    except Exception:
        remove_stored_file(stored.path)
        raise

    logger.info(
        f"Attachment uploaded: {attachment.original_name} ({attachment.size} bytes) "
        f"to task {context.task.id}"
    )
    log_activity(
        background_tasks,
        request,
        current_user.id,
        "task.update",
        "task",
        context.task.id,
        attachment_id=attachment.id,
        attachment_added=attachment.original_name,
        size=attachment.size,
    )
    return AttachmentResponse(attachment=AttachmentOut.model_validate(attachment))


@router.get("/{attachment_id}", response_class=FileResponse)
async def download_attachment(
    attachment: Attachment = Depends(get_attachment),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
):
    """Stream the stored file under its original name."""
    context = await load_task_context(attachment.task_id, db)
    if not has_access(context.board, current_user.id):
        raise AuthorizationError("Not authorized to access this attachment")

    if not os.path.isfile(attachment.path):
        logger.error(f"Attachment {attachment.id} missing on disk: {attachment.path}")
        raise NotFoundError("File not found")

    return FileResponse(
        attachment.path,
        media_type=attachment.mime_type,
        filename=attachment.original_name,
    )


@router.delete("/{attachment_id}", response_model=MessageResponse)
async def delete_attachment(
    request: Request,
    background_tasks: BackgroundTasks,
    attachment: Attachment = Depends(get_attachment),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    attachment_db_handler: AttachmentDBHandler = Depends(),
):
    """Delete an attachment. Allowed for the uploader or any board editor."""
    context = await load_task_context(attachment.task_id, db)
    is_uploader = attachment.uploaded_by_id == current_user.id
    if not is_uploader and not can_edit(context.board, current_user.id):
        raise AuthorizationError("Not authorized to delete this attachment")

    attachment_id, path = attachment.id, attachment.path
    original_name, task_id = attachment.original_name, attachment.task_id
    await attachment_db_handler.remove(attachment_id, db=db)
    remove_stored_file(path)

    logger.info(f"Attachment deleted: {original_name} from task {task_id}")
    log_activity(
        background_tasks,
        request,
        current_user.id,
        "task.update",
        "task",
        task_id,
        attachment_id=attachment_id,
        attachment_removed=original_name,
    )
    return MessageResponse(message="Attachment deleted")
