"""
Application Wiring.

Builds every component once, explicitly, and hands them out by reference.
There are no module-level singletons for the sync core: callers own the
container and its lifetime.

Usage:
    async with session_scope() as db:
        container = build_container(SqlLocalStore(db), session=UserSession())
        await container.sync.on_startup()
        await container.close()
"""

from dataclasses import dataclass

from notesync.core.config import AppConfig, get_app_config, get_remote_endpoint, get_settings
from notesync.core.logging import get_logger
from notesync.core.resilience import create_circuit_breaker
from notesync.core.session import SessionProvider, UserSession
from notesync.remote.base import RemoteStore
from notesync.remote.http import HttpRemoteStore
from notesync.repositories.local import LocalStore
from notesync.repositories.public_note import PublicNoteRepository
from notesync.repositories.storage import ProfileMediaRepository
from notesync.repositories.synced_note import SyncedNoteRepository
from notesync.services.social import SocialService
from notesync.services.sync import SyncManager

logger = get_logger(__name__)


@dataclass
class Container:
    """Components of one running instance."""

    config: AppConfig
    session: UserSession
    remote: RemoteStore
    local: LocalStore
    public_notes: PublicNoteRepository
    synced_notes: SyncedNoteRepository
    profile_media: ProfileMediaRepository
    sync: SyncManager
    social: SocialService

    async def close(self) -> None:
        """Release the remote client's connections."""
        close = getattr(self.remote, "close", None)
        if close is not None:
            await close()


def build_remote_store(session: SessionProvider, config: AppConfig | None = None) -> HttpRemoteStore:
    """HTTP remote store from remote.yaml and the API key secret."""
    config = config or get_app_config()
    base_url, timeout = get_remote_endpoint()
    breaker_config = config.remote.circuit_breaker
    return HttpRemoteStore(
        base_url,
        get_settings().remote_api_key,
        session=session,
        timeout=timeout,
        breaker=create_circuit_breaker(
            "remote_store",
            fail_max=breaker_config.fail_max,
            timeout_duration=breaker_config.timeout_duration,
        ),
    )


def build_container(
    local: LocalStore,
    *,
    session: UserSession | None = None,
    remote: RemoteStore | None = None,
    config: AppConfig | None = None,
) -> Container:
    """
    Wire the sync core.

    The sync manager is registered as an auth listener on the session, so
    a sign-in triggers a background reconciliation.
    """
    config = config or get_app_config()
    session = session or UserSession()
    remote = remote or build_remote_store(session, config)

    tables = config.remote.tables
    wire_format = config.sync.codec.wire_format
    note_settings = config.sync.notes

    public_notes = PublicNoteRepository(
        remote,
        local,
        session=session,
        table=tables.public_notes,
        wire_format=wire_format,
        use_native_upsert=config.remote.use_native_upsert,
    )
    synced_notes = SyncedNoteRepository(
        remote,
        table=tables.synced_notes,
        wire_format=wire_format,
    )
    sync = SyncManager(
        local,
        synced_notes,
        session,
        notes_enabled=note_settings.enabled,
        max_concurrent_uploads=note_settings.max_concurrent_uploads,
        retry_attempts=note_settings.retry.max_attempts,
        retry_multiplier=note_settings.retry.backoff_multiplier,
        retry_max_wait=note_settings.retry.backoff_max,
        pass_timeout=config.application.timeouts.sync_pass,
    )
    social = SocialService(
        remote,
        session,
        likes_table=tables.likes,
        comments_table=tables.comments,
        toggle_via_rpc=config.sync.social.toggle_via_rpc,
    )
    session.add_listener(sync.on_auth_state_changed)

    logger.debug(
        "Container built",
        extra={"remote": type(remote).__name__, "wire_format": wire_format},
    )
    return Container(
        config=config,
        session=session,
        remote=remote,
        local=local,
        public_notes=public_notes,
        synced_notes=synced_notes,
        profile_media=ProfileMediaRepository(remote, config.remote.buckets.profile_images),
        sync=sync,
        social=social,
    )
