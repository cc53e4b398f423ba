"""
Attachment model plus the values derived from it on read.

Only file metadata and the storage path are persisted; extension, the
human-readable size and the image/document classification are computed
from the row each time they are needed.
"""

import math

from sqlalchemy import BigInteger, Column, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from vortexboard.models.base import (
    Base,
    ObjectIdMixin,
    TimestampMixin,
    qualified,
    table_args,
)

IMAGE_MIME_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml"}
)
DOCUMENT_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
)
SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


class Attachment(Base, ObjectIdMixin, TimestampMixin):
    """A file uploaded to a task."""

    __tablename__ = "attachments"
    __table_args__ = table_args(
        Index("ix_attachments_task_id_created_at", "task_id", "created_at"),
        Index("ix_attachments_uploaded_by_id", "uploaded_by_id"),
    )

    filename = Column(String(255), nullable=False, comment="Stored file name")

    original_name = Column(String(255), nullable=False, comment="Name as uploaded")

    mime_type = Column(String(255), nullable=False)

    size = Column(BigInteger, nullable=False, comment="Size in bytes")

    path = Column(String(1024), nullable=False, comment="Storage path on disk")

    task_id = Column(
        String(24),
        ForeignKey(qualified("tasks.id"), ondelete="CASCADE"),
        nullable=False,
    )

    uploaded_by_id = Column(
        String(24),
        ForeignKey(qualified("users.id"), ondelete="CASCADE"),
        nullable=False,
    )

    uploaded_by = relationship("User")

    def __repr__(self):
        return f"<Attachment(id={self.id}, original_name='{self.original_name}')>"


def file_extension(original_name: str) -> str:
    """Text after the last dot; the whole name when there is no dot."""
    return original_name.rsplit(".", 1)[-1]


def format_file_size(size: int) -> str:
    """1024-based human-readable size, e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    exponent = min(int(math.floor(math.log(size, 1024))), len(SIZE_UNITS) - 1)
    value = round(size / 1024**exponent, 2)
    if value == int(value):
        value = int(value)
    return f"{value} {SIZE_UNITS[exponent]}"


def is_image(mime_type: str) -> bool:
    return mime_type in IMAGE_MIME_TYPES


def is_document(mime_type: str) -> bool:
    return mime_type in DOCUMENT_MIME_TYPES
