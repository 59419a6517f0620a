"""
Pending Delete Model.

A note deleted on this device whose tombstone has not reached the synced
mirror yet. Rows are cleared once the tombstone is written.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from notesync.core.utils import utc_now
from notesync.models.base import Base


class PendingDelete(Base):
    """Queued tombstone, keyed by the deleted note's identifier."""

    __tablename__ = "pending_deletes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    deleted_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    def __repr__(self) -> str:
        return f"<PendingDelete(id={self.id})>"
