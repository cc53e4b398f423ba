from vortexboard.db_handlers.activity_log import ActivityLogDBHandler
from vortexboard.db_handlers.attachment import AttachmentDBHandler
from vortexboard.db_handlers.base import BaseDBHandler, check_local_db
from vortexboard.db_handlers.board import BoardDBHandler
from vortexboard.db_handlers.comment import CommentDBHandler
from vortexboard.db_handlers.notification import NotificationDBHandler
from vortexboard.db_handlers.task import TaskDBHandler
from vortexboard.db_handlers.user import UserDBHandler

__all__ = [
    "BaseDBHandler",
    "check_local_db",
    "UserDBHandler",
    "BoardDBHandler",
    "TaskDBHandler",
    "CommentDBHandler",
    "AttachmentDBHandler",
    "NotificationDBHandler",
    "ActivityLogDBHandler",
]
