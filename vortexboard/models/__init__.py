"""
Database models for VortexBoard.

Architecture: User → Board (+ collaborators) → Task → Comment / Attachment,
with Notification and ActivityLog recorded alongside.
"""

from vortexboard.models.activity_log import ActivityLog
from vortexboard.models.attachment import Attachment
from vortexboard.models.board import Board, BoardCollaborator
from vortexboard.models.comment import Comment
from vortexboard.models.notification import Notification
from vortexboard.models.task import Task
from vortexboard.models.user import User

__all__ = [
    # Core business models
    "User",
    "Board",
    "BoardCollaborator",
    "Task",
    "Comment",
    "Attachment",
    # Side records
    "Notification",
    "ActivityLog",
]
