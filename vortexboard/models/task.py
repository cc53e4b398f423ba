"""
Task model: a card on a board.

Lifecycle:
    todo → in-progress → done (any transition allowed)

Key Features:
    - Manual ordering through ``position`` (new tasks go after the last one)
    - Optional assignee and due date
    - ``completed_at`` tracks when the task last entered ``done``
"""

from datetime import datetime

from sqlalchemy import JSON, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship, validates

from vortexboard.models.base import (
    Base,
    ObjectIdMixin,
    TimestampMixin,
    UTCDateTime,
    as_utc,
    qualified,
    table_args,
    utc_now,
)

TASK_STATUSES = ("todo", "in-progress", "done")
TASK_PRIORITIES = ("low", "medium", "high")


class Task(Base, ObjectIdMixin, TimestampMixin):
    """A unit of work on a board."""

    __tablename__ = "tasks"
    __table_args__ = table_args(
        Index("ix_tasks_board_id_status", "board_id", "status"),
        Index("ix_tasks_board_id_priority", "board_id", "priority"),
        Index("ix_tasks_board_id_position", "board_id", "position"),
        Index("ix_tasks_assigned_to_id", "assigned_to_id"),
        Index("ix_tasks_due_date", "due_date"),
    )

    title = Column(String(200), nullable=False, comment="Task title")

    description = Column(Text, nullable=True, comment="Optional description")

    board_id = Column(
        String(24),
        ForeignKey(qualified("boards.id"), ondelete="CASCADE"),
        nullable=False,
        comment="Board this task belongs to",
    )

    created_by_id = Column(
        String(24),
        ForeignKey(qualified("users.id"), ondelete="CASCADE"),
        nullable=False,
        comment="User who created the task",
    )

    assigned_to_id = Column(
        String(24),
        ForeignKey(qualified("users.id"), ondelete="SET NULL"),
        nullable=True,
        comment="Optional assignee",
    )

    status = Column(
        String(20),
        nullable=False,
        default="todo",
        comment="Column status: todo/in-progress/done",
    )

    priority = Column(
        String(10),
        nullable=False,
        default="medium",
        comment="Priority: low/medium/high",
    )

    due_date = Column(UTCDateTime, nullable=True, comment="Optional due date")

    tags = Column(JSON, nullable=False, default=list, comment="Distinct tag strings")

    position = Column(
        Integer,
        nullable=False,
        default=0,
        comment="Manual ordering within the board",
    )

    completed_at = Column(
        UTCDateTime,
        nullable=True,
        comment="When the task last moved to done (cleared when it leaves done)",
    )

    board = relationship("Board", back_populates="tasks")
    created_by = relationship("User", foreign_keys=[created_by_id])
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])

    @validates("status")
    def validate_status(self, key, value):
        if value not in TASK_STATUSES:
            raise ValueError(f"Invalid status: {value}")
        return value

    @validates("priority")
    def validate_priority(self, key, value):
        if value not in TASK_PRIORITIES:
            raise ValueError(f"Invalid priority: {value}")
        return value

    @validates("tags")
    def validate_tags(self, key, value):
        return normalize_tags(value)

    def is_overdue(self, now: datetime | None = None) -> bool:
        if self.due_date is None or self.status == "done":
            return False
        return as_utc(self.due_date) < (now or utc_now())

    def __repr__(self):
        return (
            f"<Task(id={self.id}, title='{self.title[:50]}', "
            f"status='{self.status}', board_id={self.board_id})>"
        )


def normalize_tags(tags) -> list[str]:
    """Trim tags, drop empties and duplicates, keep first-seen order."""
    seen = []
    for tag in tags or []:
        tag = str(tag).strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen
