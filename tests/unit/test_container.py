"""Unit tests for notesync.container."""

from unittest.mock import patch

import pytest

from notesync.container import build_container, build_remote_store
from notesync.remote.http import HttpRemoteStore
from notesync.services.sync import SyncManager


class TestBuildContainer:
    def test_wires_components_from_config(self, local_store, remote, signed_in_session, mock_app_config):
        mock_app_config.sync.codec.wire_format = "rtf"
        mock_app_config.remote.use_native_upsert = False

        container = build_container(
            local_store, session=signed_in_session, remote=remote, config=mock_app_config
        )

        assert container.local is local_store
        assert container.remote is remote
        assert container.public_notes.wire_format.value == "rtf"
        assert container.public_notes.use_native_upsert is False
        assert container.synced_notes.table == "synced_notes"
        assert container.profile_media.bucket == "profile-images"
        assert container.social.likes_table == "note_likes"
        assert isinstance(container.sync, SyncManager)
        assert container.sync.max_concurrent_uploads == 2

    @pytest.mark.asyncio
    async def test_sign_in_triggers_reconciliation(self, local_store, remote, user_session, mock_app_config, make_note):
        container = build_container(local_store, session=user_session, remote=remote, config=mock_app_config)
        await make_note("offline note")

        await container.session.sign_in("user-1", "token-1")

        assert len(remote.rows("synced_notes")) == 1

    @pytest.mark.asyncio
    async def test_close_without_client(self, local_store, remote, mock_app_config):
        container = build_container(local_store, remote=remote, config=mock_app_config)
        await container.close()


class TestBuildRemoteStore:
    def test_http_store_from_config(self, signed_in_session, mock_app_config):
        with patch("notesync.container.get_remote_endpoint", return_value=("https://remote.test", 5.0)), \
             patch("notesync.container.get_settings") as mock_settings:
            mock_settings.return_value.remote_api_key = "anon-key"
            store = build_remote_store(signed_in_session, mock_app_config)

        assert isinstance(store, HttpRemoteStore)
        assert store.base_url == "https://remote.test"
        assert store.api_key == "anon-key"
        assert store.timeout == 5.0
