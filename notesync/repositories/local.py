"""
Local Store Adapter.

The contract the sync core uses against the on-device record store, and
its SQLAlchemy implementation.

Categories are addressed as objects because rows written before
identifiers existed have no ``id``. Notes reference categories by value;
deleting a category never touches notes and an orphaned reference falls
back to the default category at read time.

All mutations are staged in the session and become durable on ``save()``.
Any SQLAlchemy failure surfaces as DatabaseError.
"""

from collections.abc import Awaitable, Iterable
from datetime import datetime
from typing import Protocol, TypeVar

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notesync.core.exceptions import ConflictError, DatabaseError, ValidationError
from notesync.core.identifiers import identifier_for
from notesync.core.logging import get_logger
from notesync.core.palette import ensure_palette_tokens
from notesync.core.utils import new_identifier
from notesync.models.category import Category
from notesync.models.note import Note
from notesync.repositories.category import CategoryRepository
from notesync.repositories.note import NoteRepository
from notesync.repositories.pending_delete import PendingDeleteRepository

logger = get_logger(__name__)

T = TypeVar("T")


class LocalStore(Protocol):
    """On-device record store for notes and categories."""

    async def fetch_categories(self) -> list[Category]:
        ...

    async def get_category(self, category_id: str) -> Category | None:
        ...

    async def add_category(
        self,
        name: str,
        color: str,
        symbol: str,
        *,
        identifier: str | None = None,
        index: int | None = None,
        is_default: bool = False,
        created_at: datetime | None = None,
    ) -> Category:
        ...

    async def edit_category(
        self,
        category: Category,
        *,
        name: str | None = None,
        color: str | None = None,
        symbol: str | None = None,
        index: int | None = None,
    ) -> Category:
        ...

    async def assign_category_identifier(
        self,
        category: Category,
        identifier: str,
        *,
        is_default: bool | None = None,
    ) -> None:
        ...

    async def delete_category(self, category: Category, *, force: bool = False) -> None:
        ...

    async def category_for_note(self, note: Note) -> Category | None:
        ...

    async def fetch_notes(
        self,
        *,
        category_id: str | None = None,
        ids: Iterable[str] | None = None,
    ) -> list[Note]:
        ...

    async def get_note(self, note_id: str) -> Note | None:
        ...

    async def upsert_note(self, note: Note, *, touch: bool = True) -> Note:
        ...

    async def delete_note(self, note_id: str, *, record: bool = True) -> bool:
        ...

    async def fetch_pending_deletes(self) -> list[str]:
        ...

    async def clear_pending_delete(self, note_id: str) -> None:
        ...

    async def reassign_notes(self, old_category_id: str, new_category_id: str) -> int:
        ...

    async def save(self) -> None:
        ...


class SqlLocalStore:
    """
    LocalStore over a SQLAlchemy async session.

    One instance wraps one session; callers serialize access to it.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.categories = CategoryRepository(session)
        self.notes = NoteRepository(session)
        self.pending_deletes = PendingDeleteRepository(session)

    async def _execute_db_operation(self, operation: str, coro: Awaitable[T]) -> T:
        """
        Execute a local store operation with error handling.

        Raises:
            ConflictError: For unique constraint violations
            DatabaseError: For other database errors
        """
        try:
            return await coro
        except IntegrityError as e:
            logger.warning(
                "Local store integrity error",
                extra={"operation": operation, "error": str(e)},
            )
            error_str = str(e).lower()
            if "unique" in error_str or "duplicate" in error_str:
                raise ConflictError(f"Local record already exists: {operation}") from e
            raise DatabaseError(f"Local store constraint violation: {operation}") from e
        except SQLAlchemyError as e:
            logger.error(
                "Local store error",
                extra={"operation": operation, "error": str(e)},
            )
            raise DatabaseError(f"Local store operation failed: {operation}") from e

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def fetch_categories(self) -> list[Category]:
        return await self._execute_db_operation(
            "fetch_categories", self.categories.get_all_ordered()
        )

    async def get_category(self, category_id: str) -> Category | None:
        return await self._execute_db_operation(
            "get_category", self.categories.get_by_id_or_none(category_id)
        )

    async def add_category(
        self,
        name: str,
        color: str,
        symbol: str,
        *,
        identifier: str | None = None,
        index: int | None = None,
        is_default: bool = False,
        created_at: datetime | None = None,
    ) -> Category:
        """
        Create a category.

        User-created categories get a random identifier unless one is
        given; built-ins are created with their deterministic one.

        Raises:
            ValidationError: If color or symbol is outside the palette
        """
        ensure_palette_tokens(color, symbol)
        if index is None:
            index = await self._execute_db_operation("next_index", self.categories.next_index())
        if identifier is None:
            identifier = identifier_for(name, color, symbol) if is_default else new_identifier()
        values = {
            "id": identifier,
            "name": name,
            "color": color,
            "symbol": symbol,
            "index": index,
            "is_default": is_default,
        }
        if created_at is not None:
            values["created_at"] = created_at
        return await self._execute_db_operation("add_category", self.categories.create(**values))

    async def edit_category(
        self,
        category: Category,
        *,
        name: str | None = None,
        color: str | None = None,
        symbol: str | None = None,
        index: int | None = None,
    ) -> Category:
        """
        Edit a category.

        Raises:
            ValidationError: If a built-in's name, color or symbol would
                change, or a token is outside the palette
        """
        changes = {
            field: value
            for field, value in (("name", name), ("color", color), ("symbol", symbol))
            if value is not None and value != getattr(category, field)
        }
        if changes and category.is_builtin:
            raise ValidationError(
                "Built-in categories cannot be renamed or restyled",
                details={"fields": sorted(changes)},
            )
        ensure_palette_tokens(changes.get("color", category.color), changes.get("symbol", category.symbol))
        for field, value in changes.items():
            setattr(category, field, value)
        if index is not None:
            category.index = index
        return await self._execute_db_operation("edit_category", self.categories.add(category))

    async def assign_category_identifier(
        self,
        category: Category,
        identifier: str,
        *,
        is_default: bool | None = None,
    ) -> None:
        category.id = identifier
        if is_default is not None:
            category.is_default = is_default
        await self._execute_db_operation("assign_category_identifier", self.categories.add(category))

    async def delete_category(self, category: Category, *, force: bool = False) -> None:
        """
        Delete a category. Notes referencing it are left untouched.

        Raises:
            ValidationError: If the category is built-in and force is not set
        """
        if category.is_builtin and not force:
            raise ValidationError("Built-in categories cannot be deleted")
        await self._execute_db_operation("delete_category", self.categories.remove(category))

    async def category_for_note(self, note: Note) -> Category | None:
        """The note's category, or the default one when the reference is orphaned."""
        if note.category_id:
            category = await self.get_category(note.category_id)
            if category is not None:
                return category
        return await self._execute_db_operation("default_category", self.categories.get_default())

    # -------------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------------

    async def fetch_notes(
        self,
        *,
        category_id: str | None = None,
        ids: Iterable[str] | None = None,
    ) -> list[Note]:
        if ids is not None:
            return await self._execute_db_operation("fetch_notes", self.notes.get_by_ids(ids))
        if category_id is not None:
            return await self._execute_db_operation(
                "fetch_notes", self.notes.get_by_category(category_id)
            )
        return await self._execute_db_operation("fetch_notes", self.notes.get_all_recent())

    async def get_note(self, note_id: str) -> Note | None:
        return await self._execute_db_operation("get_note", self.notes.get_by_id_or_none(note_id))

    async def upsert_note(self, note: Note, *, touch: bool = True) -> Note:
        """
        Stage a new or edited note.

        With ``touch``, ``last_modified`` moves to now unless the caller set
        it in this change. Applying a downloaded row passes ``touch=False``
        so the note keeps the remote clock.
        """
        if touch and not _clock_set_by_caller(note):
            note.touch()
        return await self._execute_db_operation("upsert_note", self.notes.add(note))

    async def delete_note(self, note_id: str, *, record: bool = True) -> bool:
        """
        Delete a note and its images. Returns False when it did not exist.

        With ``record``, a tombstone is queued for the synced mirror until
        ``clear_pending_delete`` is called. Deletes applied from the mirror
        pass ``record=False``.
        """
        note = await self.get_note(note_id)
        if note is None:
            return False
        await self._execute_db_operation("delete_note", self.notes.remove(note))
        if record:
            await self._execute_db_operation("queue_delete", self.pending_deletes.enqueue(note_id))
        return True

    async def fetch_pending_deletes(self) -> list[str]:
        """Identifiers of deleted notes whose tombstone is still owed, oldest first."""
        entries = await self._execute_db_operation(
            "fetch_pending_deletes", self.pending_deletes.get_all_oldest_first()
        )
        return [entry.id for entry in entries]

    async def clear_pending_delete(self, note_id: str) -> None:
        entry = await self._execute_db_operation(
            "get_pending_delete", self.pending_deletes.get_by_id_or_none(note_id)
        )
        if entry is not None:
            await self._execute_db_operation("clear_pending_delete", self.pending_deletes.remove(entry))

    async def reassign_notes(self, old_category_id: str, new_category_id: str) -> int:
        if old_category_id == new_category_id:
            return 0
        return await self._execute_db_operation(
            "reassign_notes", self.notes.reassign_category(old_category_id, new_category_id)
        )

    async def save(self) -> None:
        """Commit staged changes."""
        await self._execute_db_operation("save", self.session.commit())
        logger.debug("Local store saved")


def _clock_set_by_caller(note: Note) -> bool:
    """Whether last_modified was assigned since the note was last loaded or flushed."""
    if note.last_modified is None:
        return False
    return inspect(note).attrs.last_modified.history.has_changes()
