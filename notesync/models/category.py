"""
Category Model.

A user-visible grouping for notes. Built-in categories carry identifiers
derived from their content so they agree across installs; user-created
ones get random identifiers.

``id`` may be missing on rows written before identifiers were assigned;
the surrogate ``pk`` doubles as the insertion-order index used to break
ties between duplicates.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from notesync.core.identifiers import is_default_identifier
from notesync.core.utils import utc_now
from notesync.models.base import Base


class Category(Base):
    """Category local store model."""

    __tablename__ = "categories"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str | None] = mapped_column(
        String(36),
        unique=True,
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    color: Mapped[str] = mapped_column(String(32), nullable=False)
    symbol: Mapped[str] = mapped_column(String(64), nullable=False)
    index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_default: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=True,
    )

    @property
    def is_builtin(self) -> bool:
        """Built-ins are protected from destructive edits and deletion."""
        return self.is_default or is_default_identifier(self.id)

    def __repr__(self) -> str:
        return f"<Category(pk={self.pk}, id={self.id}, name={self.name!r})>"
