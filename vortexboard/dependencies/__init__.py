from vortexboard.dependencies.auth import get_current_user
from vortexboard.dependencies.resources import (
    TaskContext,
    ensure_object_id,
    get_accessible_board,
    get_accessible_task,
    get_board,
    get_comment,
    get_task_context,
)
from vortexboard.dependencies.services import (
    get_email_service,
    get_notification_service,
)

__all__ = [
    "get_current_user",
    "TaskContext",
    "ensure_object_id",
    "get_board",
    "get_accessible_board",
    "get_task_context",
    "get_accessible_task",
    "get_comment",
    "get_email_service",
    "get_notification_service",
]
