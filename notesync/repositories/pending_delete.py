"""
Pending Delete Repository.

Queue of local deletes still owed to the synced mirror.
"""

from sqlalchemy import select

from notesync.models.pending_delete import PendingDelete
from notesync.repositories.base import BaseRepository


class PendingDeleteRepository(BaseRepository[PendingDelete]):
    model = PendingDelete

    async def get_all_oldest_first(self) -> list[PendingDelete]:
        result = await self.session.execute(
            select(PendingDelete).order_by(PendingDelete.deleted_at)
        )
        return list(result.scalars().all())

    async def enqueue(self, note_id: str) -> PendingDelete:
        """Queue a tombstone; queuing the same note twice keeps one entry."""
        entry = await self.session.merge(PendingDelete(id=note_id))
        await self.session.flush()
        return entry
