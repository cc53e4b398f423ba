"""
Base configurations and mixins for database models.

This module provides the foundation for all VortexBoard models: the
declarative base with dictionary serialization, the 24-hex identifier and
timestamp mixins, a UTC-normalizing datetime type, and helpers that qualify
table and foreign key names when a PostgreSQL schema is configured.
"""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, String, inspect
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from vortexboard.config import settings
from vortexboard.utils.object_id import generate_object_id

SCHEMA_NAME = settings.schema_name


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime column that always round-trips as UTC.

    SQLite stores datetimes without an offset; values read back are tagged
    as UTC so they compare cleanly with ``utc_now()``.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return as_utc(value)

    def process_result_value(self, value, dialect):
        return as_utc(value)


class CustomBase:
    """
    Custom base class for SQLAlchemy models with dictionary serialization.

    Datetimes are rendered with isoformat(); columns named in ``exclude``
    are skipped.
    """

    def to_dict(self, exclude: set[str] | None = None) -> dict:
        d = {}
        if not self:
            return d
        exclude = exclude or set()
        for column in inspect(self).mapper.column_attrs:
            if column.key in exclude:
                continue
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                d[column.key] = value.isoformat()
            else:
                d[column.key] = value
        return d


# Create the base class for all models
Base = declarative_base(cls=CustomBase)


class TimestampMixin:
    """
    Adds created_at and updated_at columns.

    Both are filled on insert; updated_at is refreshed on every ORM update.
    """

    created_at = Column(
        UTCDateTime,
        default=utc_now,
        nullable=False,
        comment="Timestamp when the record was created",
    )
    updated_at = Column(
        UTCDateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
        comment="Timestamp when the record was last updated",
    )


class ObjectIdMixin:
    """
    Adds a 24-character hexadecimal primary key generated on insert.
    """

    id = Column(
        String(24),
        primary_key=True,
        default=generate_object_id,
        comment="Primary key in 24-hex object id format",
    )


def table_args(*items) -> tuple:
    """Build __table_args__, appending the schema option when one is configured."""
    if SCHEMA_NAME:
        return (*items, {"schema": SCHEMA_NAME})
    return tuple(items)


def qualified(target: str) -> str:
    """Qualify a 'table.column' foreign key target with the configured schema."""
    return f"{SCHEMA_NAME}.{target}" if SCHEMA_NAME else target


__all__ = [
    "Base",
    "TimestampMixin",
    "ObjectIdMixin",
    "UTCDateTime",
    "SCHEMA_NAME",
    "as_utc",
    "utc_now",
    "table_args",
    "qualified",
]
