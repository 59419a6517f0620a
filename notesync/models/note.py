"""
Note Model.

The authoritative local copy of a note. The rich document is stored as
archive-format bytes; images are owned blobs deleted with the note.

``category_id`` is a plain value column, not a foreign key: deleting a
category never touches its notes, and an orphaned reference is resolved at
read time.
"""

import datetime as dt

from sqlalchemy import Date, Float, ForeignKey, Integer, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notesync.codec import RichDocument, decode, decode_strict, encode
from notesync.models.base import Base, CreatedAtMixin, LastModifiedMixin, UUIDMixin


class Note(UUIDMixin, CreatedAtMixin, LastModifiedMixin, Base):
    """Note local store model."""

    __tablename__ = "notes"

    document_data: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    category_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    location_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    location_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    place_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    locality: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_public: Mapped[bool] = mapped_column(default=False, nullable=False)
    is_anonymous: Mapped[bool] = mapped_column(default=False, nullable=False)

    images: Mapped[list["NoteImage"]] = relationship(
        back_populates="note",
        cascade="all, delete-orphan",
        order_by="NoteImage.position",
        lazy="selectin",
    )

    @property
    def document(self) -> RichDocument:
        """The rich document, empty when missing or unreadable."""
        return decode(self.document_data)

    def outgoing_document(self) -> RichDocument:
        """
        The document as it must leave this device.

        Missing bytes are an empty document; unreadable bytes are an error
        rather than an empty document overwriting good copies elsewhere.

        Raises:
            DecodeError: If the stored bytes cannot be decoded
        """
        if not self.document_data:
            return RichDocument.empty()
        return decode_strict(self.document_data)

    def set_document(self, document: RichDocument) -> None:
        """
        Store a rich document.

        Raises:
            EncodeError: If the document cannot be encoded; the stored
                payload is left untouched
        """
        self.document_data = encode(document)

    @property
    def plain_text(self) -> str:
        return self.document.plain_text()

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, category_id={self.category_id})>"


class NoteImage(Base):
    """An image blob attached to a note."""

    __tablename__ = "note_images"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    note_id: Mapped[str] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    content_type: Mapped[str] = mapped_column(String(64), default="image/jpeg", nullable=False)

    note: Mapped[Note] = relationship(back_populates="images")
