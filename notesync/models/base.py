"""
SQLAlchemy Base Model.

Base class for all local store models with common fields and utilities.
"""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from notesync.core.utils import new_identifier, utc_now


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class CreatedAtMixin:
    """Mixin that adds a created_at timestamp."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=False,
    )


class LastModifiedMixin:
    """Mixin that adds a last_modified timestamp, the sync conflict clock."""

    last_modified: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=False,
        index=True,
    )

    def touch(self) -> None:
        """Mark the record as modified now."""
        self.last_modified = utc_now()


class UUIDMixin:
    """Mixin that adds a UUID string primary key."""

    id: Mapped[str] = mapped_column(
        primary_key=True,
        default=new_identifier,
    )
