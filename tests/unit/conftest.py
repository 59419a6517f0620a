"""
Unit Test Fixtures.

Fixtures for unit tests that need a collaborator mocked out rather than
the in-memory remote store or SQLite local store from the root conftest.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest


# =============================================================================
# Remote Store Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_remote() -> AsyncMock:
    """
    Mock remote store for unit tests.

    Every row operation is an AsyncMock returning an empty result.

    Usage:
        async def test_social(mock_remote, signed_in_session):
            mock_remote.count.return_value = 3
            service = SocialService(mock_remote, signed_in_session)
    """
    remote = AsyncMock()
    remote.select = AsyncMock(return_value=[])
    remote.count = AsyncMock(return_value=0)
    remote.insert = AsyncMock(side_effect=lambda table, row: {"id": "generated", **row})
    remote.update = AsyncMock(return_value=[])
    remote.upsert = AsyncMock(side_effect=lambda table, row, on_conflict="id": dict(row))
    remote.delete = AsyncMock(return_value=[])
    remote.rpc = AsyncMock(return_value=None)
    remote.list_objects = AsyncMock(return_value=[])
    remote.public_url = MagicMock(side_effect=lambda bucket, path: f"https://cdn.test/{bucket}/{path}")
    return remote


# =============================================================================
# Config Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_app_config() -> MagicMock:
    """
    Mock YAML application configuration.

    Usage:
        def test_wiring(mock_app_config):
            container = build_container(local, remote=remote, config=mock_app_config)
    """
    config = MagicMock()
    config.remote.tables.public_notes = "public_notes"
    config.remote.tables.synced_notes = "synced_notes"
    config.remote.tables.likes = "note_likes"
    config.remote.tables.comments = "comments"
    config.remote.buckets.profile_images = "profile-images"
    config.remote.use_native_upsert = True
    config.remote.circuit_breaker.fail_max = 5
    config.remote.circuit_breaker.timeout_duration = 30
    config.sync.codec.wire_format = "archive"
    config.sync.notes.enabled = True
    config.sync.notes.max_concurrent_uploads = 2
    config.sync.notes.retry.max_attempts = 2
    config.sync.notes.retry.backoff_multiplier = 0
    config.sync.notes.retry.backoff_max = 0
    config.sync.social.toggle_via_rpc = False
    config.application.timeouts.sync_pass = None
    return config


# =============================================================================
# Logging Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_logger() -> MagicMock:
    """
    Mock logger for testing logging calls.

    Usage:
        def test_logging(mock_logger):
            with patch("notesync.repositories.storage.logger", mock_logger):
                ...
                mock_logger.warning.assert_called_once()
    """
    logger = MagicMock()
    logger.debug = MagicMock()
    logger.info = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.exception = MagicMock()
    return logger
