"""
Activity log model: write-once audit trail of mutating operations.

Entries are never updated. Rows older than the configured retention window
are removed by ``purge_expired_records`` in vortexboard.db.
"""

from sqlalchemy import JSON, Column, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from vortexboard.models.base import (
    Base,
    ObjectIdMixin,
    UTCDateTime,
    qualified,
    table_args,
    utc_now,
)

ACTIVITY_ACTIONS = (
    "user.register",
    "user.login",
    "user.logout",
    "user.update",
    "board.create",
    "board.update",
    "board.delete",
    "board.share",
    "task.create",
    "task.update",
    "task.delete",
    "task.assign",
    "task.complete",
    "comment.create",
    "comment.delete",
)
ACTIVITY_ENTITY_TYPES = ("user", "board", "task", "comment")


class ActivityLog(Base, ObjectIdMixin):
    """One recorded action by one user on one entity."""

    __tablename__ = "activity_logs"
    __table_args__ = table_args(
        Index("ix_activity_logs_user_id_timestamp", "user_id", "timestamp"),
        Index("ix_activity_logs_entity", "entity_type", "entity_id"),
        Index("ix_activity_logs_action_timestamp", "action", "timestamp"),
        Index("ix_activity_logs_timestamp", "timestamp"),
    )

    user_id = Column(
        String(24),
        ForeignKey(qualified("users.id"), ondelete="CASCADE"),
        nullable=False,
    )

    action = Column(String(30), nullable=False)

    entity_type = Column(String(10), nullable=False)

    entity_id = Column(String(24), nullable=False)

    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, nullable=False, default=dict)

    ip_address = Column(String(64), nullable=True)

    user_agent = Column(String(512), nullable=True)

    timestamp = Column(UTCDateTime, nullable=False, default=utc_now)

    user = relationship("User")

    def __repr__(self):
        return (
            f"<ActivityLog(user_id={self.user_id}, action='{self.action}', "
            f"entity={self.entity_type}:{self.entity_id})>"
        )
