"""Unit tests for notesync.repositories.storage."""

from unittest.mock import patch

import pytest

from notesync.core.exceptions import TransientError
from notesync.repositories.storage import ProfileMediaRepository


@pytest.fixture
def media(remote) -> ProfileMediaRepository:
    return ProfileMediaRepository(remote, bucket="profile-images")


class TestProfileMedia:
    @pytest.mark.asyncio
    async def test_upload_stores_under_user_folder(self, media, remote):
        path = await media.upload_profile_image("user-1", b"jpeg-bytes")

        assert path.startswith("user-1/")
        assert path.endswith(".jpg")
        assert remote.objects["profile-images"][path] == b"jpeg-bytes"
        assert media.public_url(path).endswith(f"/profile-images/{path}")

    @pytest.mark.asyncio
    async def test_each_upload_gets_new_path(self, media):
        first = await media.upload_profile_image("user-1", b"1")
        second = await media.upload_profile_image("user-1", b"2")
        assert first != second

    @pytest.mark.asyncio
    async def test_delete_one(self, media, remote):
        path = await media.upload_profile_image("user-1", b"1")
        await media.delete_profile_image(path)
        assert remote.objects["profile-images"] == {}

    @pytest.mark.asyncio
    async def test_delete_all_only_touches_that_user(self, media, remote):
        await media.upload_profile_image("user-1", b"1")
        await media.upload_profile_image("user-1", b"2")
        kept = await media.upload_profile_image("user-2", b"3")

        assert await media.delete_all_user_profile_images("user-1") == 2
        assert list(remote.objects["profile-images"]) == [kept]

    @pytest.mark.asyncio
    async def test_delete_all_with_nothing_stored(self, media):
        assert await media.delete_all_user_profile_images("user-1") == 0

    @pytest.mark.asyncio
    async def test_delete_all_failure_reports_zero(self, media, remote):
        await media.upload_profile_image("user-1", b"1")
        remote.inject_failure("remove", TransientError("503"))

        assert await media.delete_all_user_profile_images("user-1") == 0
        assert len(remote.objects["profile-images"]) == 1


class TestProfileMediaLogging:
    @pytest.mark.asyncio
    async def test_failure_is_logged(self, mock_remote, mock_logger):
        mock_remote.list_objects.side_effect = TransientError("offline")
        media = ProfileMediaRepository(mock_remote)

        with patch("notesync.repositories.storage.logger", mock_logger):
            assert await media.delete_all_user_profile_images("user-1") == 0

        mock_logger.warning.assert_called_once()
        mock_remote.remove.assert_not_awaited()

    def test_public_url_delegates(self, mock_remote):
        media = ProfileMediaRepository(mock_remote, bucket="avatars")
        assert media.public_url("u1/a.jpg") == "https://cdn.test/avatars/u1/a.jpg"
