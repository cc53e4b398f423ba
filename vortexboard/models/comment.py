"""
Comment model with single-level threading and @mentions.

Mentions are written inline as ``@[Display Name](<24-hex user id>)``. The
list of mentioned user ids is derived from the content whenever the content
is set, so it can never drift from what the comment says.
"""

import re

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship, validates

from vortexboard.models.base import (
    Base,
    ObjectIdMixin,
    TimestampMixin,
    UTCDateTime,
    qualified,
    table_args,
)

MENTION_PATTERN = re.compile(r"@\[([^\]]+)\]\(([a-fA-F\d]{24})\)")


def extract_mentions(content: str | None) -> list[str]:
    """Return mentioned user ids in first-occurrence order without duplicates."""
    mentions: list[str] = []
    for match in MENTION_PATTERN.finditer(content or ""):
        user_id = match.group(2).lower()
        if user_id not in mentions:
            mentions.append(user_id)
    return mentions


class Comment(Base, ObjectIdMixin, TimestampMixin):
    """A message on a task, optionally replying to another comment on the same task."""

    __tablename__ = "comments"
    __table_args__ = table_args(
        Index("ix_comments_task_id_created_at", "task_id", "created_at"),
        Index("ix_comments_author_id", "author_id"),
        Index("ix_comments_parent_comment_id", "parent_comment_id"),
    )

    content = Column(Text, nullable=False, comment="Comment body")

    task_id = Column(
        String(24),
        ForeignKey(qualified("tasks.id"), ondelete="CASCADE"),
        nullable=False,
    )

    author_id = Column(
        String(24),
        ForeignKey(qualified("users.id"), ondelete="CASCADE"),
        nullable=False,
    )

    parent_comment_id = Column(
        String(24),
        ForeignKey(qualified("comments.id"), ondelete="CASCADE"),
        nullable=True,
        comment="Parent comment on the same task (one level of threading)",
    )

    mentions = Column(
        JSON,
        nullable=False,
        default=list,
        comment="User ids mentioned in the content",
    )

    is_edited = Column(Boolean, nullable=False, default=False)

    edited_at = Column(UTCDateTime, nullable=True)

    author = relationship("User")

    @validates("content")
    def derive_mentions(self, key, value):
        value = value.strip() if value else value
        self.mentions = extract_mentions(value)
        return value

    def __repr__(self):
        return f"<Comment(id={self.id}, task_id={self.task_id}, author_id={self.author_id})>"
