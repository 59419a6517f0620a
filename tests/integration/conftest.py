"""
Integration Test Fixtures.

Two or more "devices", each with its own SQLite local store and session,
sharing one in-memory remote store and the shipped configuration.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from notesync.codec import RichDocument
from notesync.container import Container, build_container
from notesync.core.database import init_models
from notesync.core.session import UserSession
from notesync.models import Note
from notesync.remote.memory import InMemoryRemoteStore
from notesync.repositories.local import SqlLocalStore


@dataclass
class Device:
    """One install of the app."""

    name: str
    container: Container
    db: AsyncSession

    @property
    def local(self) -> SqlLocalStore:
        return self.container.local

    @property
    def sync(self):
        return self.container.sync

    async def write_note(self, text: str, **fields) -> Note:
        note = Note(**fields)
        note.set_document(RichDocument.from_plain_text(text))
        await self.local.upsert_note(note)
        await self.local.save()
        return note

    async def texts(self) -> set[str]:
        return {note.plain_text for note in await self.local.fetch_notes()}


# =============================================================================
# Device Fixtures
# =============================================================================


@pytest.fixture
def shared_remote() -> InMemoryRemoteStore:
    return InMemoryRemoteStore()


@pytest.fixture
async def make_device(
    shared_remote: InMemoryRemoteStore,
) -> AsyncGenerator[Callable[..., Awaitable[Device]], None]:
    """
    Create devices against the shared remote store.

    Usage:
        phone = await make_device("phone", user_id="user-1")
    """
    engines: list[AsyncEngine] = []
    sessions: list[AsyncSession] = []

    async def factory(name: str, user_id: str | None = None) -> Device:
        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        engines.append(engine)
        await init_models(engine)
        db = async_sessionmaker(engine, expire_on_commit=False)()
        sessions.append(db)
        container = build_container(
            SqlLocalStore(db),
            session=UserSession(user_id, f"token-{user_id}" if user_id else None),
            remote=shared_remote,
        )
        return Device(name=name, container=container, db=db)

    yield factory

    for db in sessions:
        await db.close()
    for engine in engines:
        await engine.dispose()
