"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Test Database Configuration:
    Every test gets a fresh in-memory SQLite local store. The sync core
    commits as it goes, so isolation comes from a new engine per test
    rather than from rolling back a shared session.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from notesync.codec import RichDocument
from notesync.core.session import UserSession
from notesync.models import Base, Note
from notesync.remote.memory import InMemoryRemoteStore
from notesync.repositories.local import SqlLocalStore

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# =============================================================================
# Local Store Fixtures
# =============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with the local store schema."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(
    db_session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with db_session_factory() as session:
        yield session


@pytest.fixture
def local_store(db_session: AsyncSession) -> SqlLocalStore:
    return SqlLocalStore(db_session)


# =============================================================================
# Remote Store and Session Fixtures
# =============================================================================


@pytest.fixture
def remote() -> InMemoryRemoteStore:
    return InMemoryRemoteStore()


@pytest.fixture
def user_session() -> UserSession:
    """A session nobody is signed into yet."""
    return UserSession()


@pytest.fixture
def signed_in_session() -> UserSession:
    return UserSession(user_id="user-1", token="token-1")


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_note(local_store: SqlLocalStore) -> Callable[..., Awaitable[Note]]:
    """
    Create and persist a note.

    Usage:
        note = await make_note("Dinner ideas", category_id=cooking.id)
    """

    async def factory(
        text: str = "Note body",
        *,
        note_id: str | None = None,
        category_id: str | None = None,
        last_modified: datetime | None = None,
        **fields,
    ) -> Note:
        note = Note(category_id=category_id, **fields)
        if note_id is not None:
            note.id = note_id
        note.set_document(RichDocument.from_plain_text(text))
        if last_modified is not None:
            note.last_modified = last_modified
        await local_store.upsert_note(note)
        await local_store.save()
        return note

    return factory
