"""
Synced Note Repository.

The owner-only ``synced_notes`` mirror used by full sync. Every local note
of a signed-in user has a row here; deletes leave a tombstone
(``is_deleted``) so other devices learn about them. ``last_modified`` is
the conflict clock.
"""

from notesync.codec import DocumentFormat, document_from_row, to_wire
from notesync.core.logging import get_logger
from notesync.core.utils import as_naive_utc, utc_now
from notesync.models.category import Category
from notesync.models.note import Note
from notesync.remote.base import RemoteStore
from notesync.schemas.remote import SyncedNoteRow

logger = get_logger(__name__)


def _coordinate_text(value: float | None) -> str | None:
    return None if value is None else repr(float(value))


def _coordinate_value(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring unreadable coordinate", extra={"value": value})
        return None


class SyncedNoteRepository:
    """Repository for the remote synced notes mirror."""

    def __init__(
        self,
        remote: RemoteStore,
        *,
        table: str = "synced_notes",
        wire_format: DocumentFormat | str = DocumentFormat.ARCHIVE,
    ) -> None:
        self.remote = remote
        self.table = table
        self.wire_format = DocumentFormat(wire_format)

    async def fetch_all(self, owner_id: str) -> list[SyncedNoteRow]:
        """Every row of the owner, tombstones included."""
        rows = await self.remote.select(self.table, filters={"owner_id": owner_id})
        return [SyncedNoteRow.model_validate(row) for row in rows]

    def to_row(self, note: Note, owner_id: str, category: Category | None) -> SyncedNoteRow:
        """
        Project a local note onto a synced row.

        Raises:
            DecodeError: If the note's stored document is unreadable
            EncodeError: If the note's document cannot be encoded
        """
        document = note.outgoing_document()
        return SyncedNoteRow(
            id=note.id,
            owner_id=owner_id,
            category_id=note.category_id,
            content=document.plain_text(),
            attributed_text_data=to_wire(document, self.wire_format),
            date=note.date,
            location_name=note.place_name,
            location_locality=note.locality,
            location_latitude=_coordinate_text(note.location_latitude),
            location_longitude=_coordinate_text(note.location_longitude),
            color_string=category.color if category else "",
            symbol=category.symbol if category else "",
            last_modified=note.last_modified,
            is_deleted=False,
            created_at=note.created_at,
            is_anonymous=note.is_anonymous,
            is_public=note.is_public,
        )

    async def upsert(self, note: Note, owner_id: str, category: Category | None) -> SyncedNoteRow:
        """Create or replace the synced row for a note. Idempotent."""
        row = self.to_row(note, owner_id, category)
        payload = row.to_remote(exclude={"created_at"} if row.created_at is None else None)
        stored = await self.remote.upsert(self.table, payload, on_conflict="id")
        logger.debug("Upserted synced note", extra={"note_id": note.id})
        return SyncedNoteRow.model_validate(stored)

    async def mark_deleted(self, note_id: str, owner_id: str) -> None:
        """Leave a tombstone for a note deleted on this device."""
        values = {"is_deleted": True, "last_modified": utc_now().isoformat()}
        updated = await self.remote.update(
            self.table, values, filters={"id": note_id, "owner_id": owner_id}
        )
        if not updated:
            tombstone = SyncedNoteRow(id=note_id, owner_id=owner_id, is_deleted=True)
            await self.remote.upsert(
                self.table,
                {**tombstone.to_remote(exclude={"created_at"}), **values},
                on_conflict="id",
            )
        logger.info("Marked synced note deleted", extra={"note_id": note_id})

    @staticmethod
    def apply_to_note(row: SyncedNoteRow, note: Note | None = None) -> Note:
        """
        Overwrite a local note with the row's contents, whole-record.

        Creates the note when none is given. The row's ``last_modified``
        becomes the note's, so the next pass sees both sides as equal.

        Raises:
            EncodeError: If the decoded document cannot be stored
        """
        if note is None:
            note = Note(id=row.id)
            if row.created_at is not None:
                note.created_at = as_naive_utc(row.created_at)
        note.set_document(document_from_row(row.attributed_text_data, row.content))
        note.category_id = row.category_id
        note.date = row.date
        note.place_name = row.location_name
        note.locality = row.location_locality
        note.location_latitude = _coordinate_value(row.location_latitude)
        note.location_longitude = _coordinate_value(row.location_longitude)
        note.is_anonymous = bool(row.is_anonymous)
        note.is_public = bool(row.is_public)
        note.last_modified = as_naive_utc(row.last_modified) or utc_now()
        return note
