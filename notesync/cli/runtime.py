"""
CLI Runtime.

Opens the local store and wires a container for the duration of one
command. Each command runs in its own event loop, so the engine is
disposed before the loop closes.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from notesync.container import Container, build_container
from notesync.core.database import dispose_engine, init_models, session_scope
from notesync.core.session import UserSession
from notesync.remote.base import RemoteStore
from notesync.repositories.local import SqlLocalStore


@asynccontextmanager
async def open_container(
    user_id: str | None = None,
    token: str | None = None,
    remote: RemoteStore | None = None,
) -> AsyncIterator[Container]:
    """
    Container over the configured local store.

    Usage:
        async with open_container(user_id, token) as container:
            await container.sync.sync_notes(explicit=True)
    """
    await init_models()
    try:
        async with session_scope() as db:
            container = build_container(
                SqlLocalStore(db),
                session=UserSession(user_id, token),
                remote=remote,
            )
            try:
                yield container
            finally:
                await container.close()
    finally:
        await dispose_engine()
