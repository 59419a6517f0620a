"""
Public Note Repository.

Mirrors local notes marked public into the remote ``public_notes`` table.
The local note stays authoritative; the remote row is a projection keyed by
the same identifier, so re-publishing converges on one row per note.

Two write paths exist:

    native  - one ``upsert(on_conflict="id")`` call
    legacy  - check-then-act (exists, then update or insert) with the
              complementary fallbacks, for stores without upsert support

Neither path retries internally; both are safe for the caller to re-issue.
"""

from notesync.codec import DocumentFormat, to_wire
from notesync.core.exceptions import ApplicationError, ConflictError, NotFoundError
from notesync.core.logging import get_logger
from notesync.core.session import SessionProvider, require_user_id
from notesync.models.category import Category
from notesync.models.note import Note
from notesync.remote.base import RemoteStore
from notesync.repositories.local import LocalStore
from notesync.schemas.remote import PublicNoteRow

logger = get_logger(__name__)

# Columns sent on write; the rest are server-side or joined.
_READ_ONLY = {"created_at", "profiles"}


class PublicNoteRepository:
    """Repository for the remote public notes mirror."""

    def __init__(
        self,
        remote: RemoteStore,
        local: LocalStore | None = None,
        *,
        session: SessionProvider | None = None,
        table: str = "public_notes",
        wire_format: DocumentFormat | str = DocumentFormat.ARCHIVE,
        use_native_upsert: bool = True,
    ) -> None:
        self.remote = remote
        self.local = local
        self.session = session
        self.table = table
        self.wire_format = DocumentFormat(wire_format)
        self.use_native_upsert = use_native_upsert

    async def exists(self, remote_id: str) -> bool:
        """Whether a public row exists. Errors are logged and read as absent."""
        try:
            rows = await self.remote.select(
                self.table, columns="id", filters={"id": remote_id}, limit=1
            )
        except ApplicationError as e:
            logger.warning(
                "Public note existence check failed",
                extra={"note_id": remote_id, "error": e.message, "code": e.code},
            )
            return False
        return bool(rows)

    def to_row(self, note: Note, owner_id: str, category: Category | None) -> PublicNoteRow:
        """
        Project a local note onto a public row.

        Category tokens are copied by value; a missing category leaves them
        empty.

        Raises:
            DecodeError: If the note's stored document is unreadable
            EncodeError: If the note's document cannot be encoded
        """
        document = note.outgoing_document()
        return PublicNoteRow(
            id=note.id,
            owner_id=owner_id,
            category_id=category.id if category else note.category_id,
            content=document.plain_text(),
            rtf_content=to_wire(document, self.wire_format),
            date=note.date,
            location_name=note.place_name,
            location_latitude=note.location_latitude,
            location_longitude=note.location_longitude,
            color_string=category.color if category else "",
            symbol=category.symbol if category else "",
            is_anonymous=note.is_anonymous,
        )

    async def upsert_public(
        self,
        note: Note,
        owner_id: str,
        category: Category | None = None,
    ) -> PublicNoteRow:
        """
        Create or replace the public row for a note.

        Raises:
            DecodeError, EncodeError: If the document cannot be read or
                encoded; nothing is sent
            AuthenticationError, AuthorizationError, TransientError,
            ConflictError: From the remote store
        """
        if category is None and self.local is not None:
            category = await self.local.category_for_note(note)
        row = self.to_row(note, owner_id, category)
        payload = row.to_remote(exclude=_READ_ONLY)

        if self.use_native_upsert:
            stored = await self.remote.upsert(self.table, payload, on_conflict="id")
            logger.info("Upserted public note", extra={"note_id": note.id})
            return PublicNoteRow.model_validate(stored)

        return await self._check_then_act(note.id, payload)

    async def _check_then_act(self, note_id: str, payload: dict) -> PublicNoteRow:
        if await self.exists(note_id):
            updated = await self.remote.update(self.table, payload, filters={"id": note_id})
            if updated:
                logger.info("Updated public note", extra={"note_id": note_id})
                return PublicNoteRow.model_validate(updated[0])
            logger.debug("Public note vanished before update", extra={"note_id": note_id})
            return await self._insert(note_id, payload)
        try:
            return await self._insert(note_id, payload)
        except ConflictError:
            logger.debug("Public note appeared before insert", extra={"note_id": note_id})
            updated = await self.remote.update(self.table, payload, filters={"id": note_id})
            if not updated:
                raise
            logger.info("Updated public note", extra={"note_id": note_id})
            return PublicNoteRow.model_validate(updated[0])

    async def _insert(self, note_id: str, payload: dict) -> PublicNoteRow:
        stored = await self.remote.insert(self.table, payload)
        logger.info("Inserted public note", extra={"note_id": note_id})
        return PublicNoteRow.model_validate(stored)

    async def delete_public(self, remote_id: str) -> None:
        """Remove the public row for a note. A missing row is not an error."""
        try:
            deleted = await self.remote.delete(self.table, filters={"id": remote_id})
        except NotFoundError:
            deleted = []
        logger.info(
            "Deleted public note",
            extra={"note_id": remote_id, "found": bool(deleted)},
        )

    async def fetch_all(self, owner_id: str | None = None) -> list[PublicNoteRow]:
        """
        Public notes with their author's username.

        All notes come newest-created first; an owner's notes come ordered
        by their note date, newest first.
        """
        if owner_id is None:
            rows = await self.remote.select(
                self.table,
                columns="*, profiles(username)",
                order="created_at",
                descending=True,
            )
        else:
            rows = await self.remote.select(
                self.table,
                columns="*, profiles(username)",
                filters={"owner_id": owner_id},
                order="date",
                descending=True,
            )
        return [PublicNoteRow.model_validate(row) for row in rows]

    async def fetch_mine(self) -> list[PublicNoteRow]:
        """
        Public notes of the signed-in user.

        Raises:
            AuthenticationError: If no user is signed in
        """
        if self.session is None:
            raise ValueError("fetch_mine needs a session provider")
        return await self.fetch_all(owner_id=require_user_id(self.session))
