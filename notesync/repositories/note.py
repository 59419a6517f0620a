"""
Note Repository.

Data access layer for notes in the local store.
"""

from collections.abc import Iterable

from sqlalchemy import select

from notesync.models.note import Note
from notesync.repositories.base import BaseRepository


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note model.

    Inherits standard CRUD operations from BaseRepository
    and adds note-specific queries.
    """

    model = Note

    async def get_all_recent(self) -> list[Note]:
        """All notes, newest first."""
        result = await self.session.execute(
            select(Note).order_by(Note.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_by_category(self, category_id: str) -> list[Note]:
        """Notes whose category reference equals category_id."""
        result = await self.session.execute(
            select(Note)
            .where(Note.category_id == category_id)
            .order_by(Note.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_by_ids(self, ids: Iterable[str]) -> list[Note]:
        wanted = list(ids)
        if not wanted:
            return []
        result = await self.session.execute(select(Note).where(Note.id.in_(wanted)))
        return list(result.scalars().all())

    async def reassign_category(self, old_id: str, new_id: str) -> int:
        """
        Point every note referencing old_id at new_id.

        Returns:
            Number of notes changed
        """
        notes = await self.get_by_category(old_id)
        for note in notes:
            note.category_id = new_id
        await self.session.flush()
        return len(notes)
