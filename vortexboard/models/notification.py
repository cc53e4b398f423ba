"""
Notification model.

Read state only moves forward: once ``is_read`` is set it stays set, and
``read_at`` records when that happened.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship, validates

from vortexboard.models.base import (
    Base,
    ObjectIdMixin,
    TimestampMixin,
    UTCDateTime,
    qualified,
    table_args,
    utc_now,
)

NOTIFICATION_TYPES = (
    "task_assigned",
    "task_completed",
    "task_due_soon",
    "task_overdue",
    "board_shared",
    "comment_added",
    "comment_mention",
    "collaborator_added",
    "task_updated",
)
NOTIFICATION_ENTITY_TYPES = ("task", "board", "comment")
NOTIFICATION_PRIORITIES = ("low", "medium", "high")


class Notification(Base, ObjectIdMixin, TimestampMixin):
    """A message to one recipient about a task, board or comment."""

    __tablename__ = "notifications"
    __table_args__ = table_args(
        Index(
            "ix_notifications_recipient_id_is_read_created_at",
            "recipient_id",
            "is_read",
            "created_at",
        ),
        Index("ix_notifications_recipient_id_type", "recipient_id", "type"),
    )

    recipient_id = Column(
        String(24),
        ForeignKey(qualified("users.id"), ondelete="CASCADE"),
        nullable=False,
    )

    sender_id = Column(
        String(24),
        ForeignKey(qualified("users.id"), ondelete="SET NULL"),
        nullable=True,
    )

    type = Column(String(30), nullable=False)

    title = Column(String(200), nullable=False)

    message = Column(Text, nullable=False)

    entity_type = Column(
        String(10), nullable=False, comment="Related entity type: task/board/comment"
    )

    entity_id = Column(String(24), nullable=False, comment="Related entity id")

    is_read = Column(Boolean, nullable=False, default=False)

    read_at = Column(UTCDateTime, nullable=True)

    priority = Column(String(10), nullable=False, default="medium")

    sender = relationship("User", foreign_keys=[sender_id])

    @validates("type")
    def validate_type(self, key, value):
        if value not in NOTIFICATION_TYPES:
            raise ValueError(f"Invalid notification type: {value}")
        return value

    @validates("entity_type")
    def validate_entity_type(self, key, value):
        if value not in NOTIFICATION_ENTITY_TYPES:
            raise ValueError(f"Invalid entity type: {value}")
        return value

    @validates("priority")
    def validate_priority(self, key, value):
        if value not in NOTIFICATION_PRIORITIES:
            raise ValueError(f"Invalid priority: {value}")
        return value

    def mark_as_read(self) -> bool:
        """Flip to read. Returns False when it was already read."""
        if self.is_read:
            return False
        self.is_read = True
        self.read_at = utc_now()
        return True

    def __repr__(self):
        return (
            f"<Notification(id={self.id}, recipient_id={self.recipient_id}, "
            f"type='{self.type}', is_read={self.is_read})>"
        )
