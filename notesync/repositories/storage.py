"""
Profile Media Repository.

Profile photos in the remote store's object storage, one folder per user:

    {user_id}/{uuid}.jpg
"""

from notesync.core.exceptions import ApplicationError
from notesync.core.logging import get_logger
from notesync.core.utils import new_identifier
from notesync.remote.base import RemoteStore

logger = get_logger(__name__)


class ProfileMediaRepository:
    """Repository for profile images."""

    def __init__(self, remote: RemoteStore, bucket: str = "profile-images") -> None:
        self.remote = remote
        self.bucket = bucket

    async def upload_profile_image(
        self,
        user_id: str,
        data: bytes,
        content_type: str = "image/jpeg",
    ) -> str:
        """
        Store a new profile image.

        Returns:
            Object path inside the bucket
        """
        path = f"{user_id}/{new_identifier()}.jpg"
        stored = await self.remote.upload(
            self.bucket, path, data, content_type=content_type, upsert=True
        )
        logger.info("Uploaded profile image", extra={"user_id": user_id, "path": stored})
        return stored

    def public_url(self, path: str) -> str:
        return self.remote.public_url(self.bucket, path)

    async def delete_profile_image(self, path: str) -> None:
        await self.remote.remove(self.bucket, [path])
        logger.info("Deleted profile image", extra={"path": path})

    async def delete_all_user_profile_images(self, user_id: str) -> int:
        """
        Remove every image in the user's folder.

        Failures are logged and reported as zero removals so a profile
        update can continue.
        """
        try:
            paths = await self.remote.list_objects(self.bucket, prefix=f"{user_id}/")
            if paths:
                await self.remote.remove(self.bucket, paths)
        except ApplicationError as e:
            logger.warning(
                "Could not clear previous profile images",
                extra={"user_id": user_id, "error": e.message},
            )
            return 0
        return len(paths)
