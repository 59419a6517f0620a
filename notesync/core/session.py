"""
Session Provider.

The core asks a session provider for the signed-in user on every call and
never caches the answer. UserSession is the in-process implementation: it
holds the current user and access token and notifies listeners when the
authentication state changes.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol

from notesync.core.exceptions import AuthenticationError
from notesync.core.logging import get_logger

logger = get_logger(__name__)

AuthListener = Callable[[str | None, str | None], Awaitable[None]]


class SessionProvider(Protocol):
    """Answers who is signed in right now."""

    def current_user_id(self) -> str | None:
        ...

    def access_token(self) -> str | None:
        ...


def require_user_id(session: SessionProvider) -> str:
    """
    Current user id, or AuthenticationError when signed out.

    Raises:
        AuthenticationError: If no user is signed in
    """
    user_id = session.current_user_id()
    if not user_id:
        raise AuthenticationError("Sign in to continue")
    return user_id


class UserSession:
    """
    Mutable session holder with auth-transition listeners.

    Usage:
        session = UserSession()
        session.add_listener(sync_manager.on_auth_state_changed)
        await session.sign_in(user_id, token)
    """

    def __init__(self, user_id: str | None = None, token: str | None = None) -> None:
        self._user_id = user_id
        self._token = token
        self._listeners: list[AuthListener] = []

    def current_user_id(self) -> str | None:
        return self._user_id

    def access_token(self) -> str | None:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._user_id is not None

    def add_listener(self, listener: AuthListener) -> None:
        self._listeners.append(listener)

    async def sign_in(self, user_id: str, token: str | None = None) -> None:
        previous = self._user_id
        self._user_id = user_id
        self._token = token
        logger.info("Session signed in", extra={"user_id": user_id})
        await self._notify(previous, user_id)

    async def sign_out(self) -> None:
        previous = self._user_id
        self._user_id = None
        self._token = None
        logger.info("Session signed out", extra={"user_id": previous})
        await self._notify(previous, None)

    async def _notify(self, previous: str | None, current: str | None) -> None:
        if previous == current:
            return
        await asyncio.gather(*(listener(previous, current) for listener in self._listeners))
