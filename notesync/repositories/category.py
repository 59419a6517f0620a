"""
Category Repository.

Data access layer for categories in the local store.
"""

from sqlalchemy import func, select

from notesync.models.category import Category
from notesync.repositories.base import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """Repository for Category model."""

    model = Category

    async def get_all_ordered(self) -> list[Category]:
        """All categories in display order, insertion order breaking ties."""
        result = await self.session.execute(
            select(Category).order_by(Category.index, Category.pk)
        )
        return list(result.scalars().all())

    async def get_default(self) -> Category | None:
        """First built-in category in display order."""
        result = await self.session.execute(
            select(Category)
            .where(Category.is_default == True)  # noqa: E712
            .order_by(Category.index, Category.pk)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def next_index(self) -> int:
        """Index that places a new category last."""
        result = await self.session.execute(select(func.max(Category.index)))
        current = result.scalar_one_or_none()
        return 0 if current is None else current + 1

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Category))
        return result.scalar_one()
