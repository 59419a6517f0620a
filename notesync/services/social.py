"""
Social Service.

Likes and comments on public notes. Counts are read from the remote store
on every call; nothing is cached. Mutations always carry the signed-in
caller's id, and the remote store's row policies decide who may touch
what.
"""

from typing import Any

from notesync.core.exceptions import ApplicationError, ConflictError, NotFoundError
from notesync.core.session import SessionProvider, require_user_id
from notesync.core.utils import utc_now
from notesync.remote.base import RemoteStore
from notesync.schemas.social import CommentRow, LikeRow
from notesync.services.base import BaseService

_PROFILE_COLUMNS = "*, profiles(username, display_name, profile_photo_url)"


class SocialService(BaseService):
    """
    Service for likes and comments.

    At most one like exists per (note, user); the remote unique constraint
    backs that up when two toggles race.
    """

    log_source = "social"

    def __init__(
        self,
        remote: RemoteStore,
        session: SessionProvider,
        *,
        likes_table: str = "note_likes",
        comments_table: str = "comments",
        toggle_via_rpc: bool = False,
    ) -> None:
        super().__init__()
        self.remote = remote
        self.session = session
        self.likes_table = likes_table
        self.comments_table = comments_table
        self.toggle_via_rpc = toggle_via_rpc

    # -------------------------------------------------------------------------
    # Likes
    # -------------------------------------------------------------------------

    async def like_count(self, note_id: str) -> int:
        return await self.remote.count(self.likes_table, filters={"note_id": note_id})

    async def has_liked(self, note_id: str, user_id: str | None = None) -> bool:
        """Whether the user (default: the signed-in one) likes the note. False on any error."""
        user_id = user_id or self.session.current_user_id()
        if not user_id:
            return False
        try:
            rows = await self.remote.select(
                self.likes_table,
                columns="id",
                filters={"note_id": note_id, "user_id": user_id},
                limit=1,
            )
        except ApplicationError as e:
            self._log_warning("Like lookup failed", note_id=note_id, error=e.message)
            return False
        return bool(rows)

    async def toggle_like(self, note_id: str) -> bool:
        """
        Flip the caller's like on a note.

        Returns:
            The new liked state

        Raises:
            AuthenticationError: If no user is signed in
        """
        user_id = require_user_id(self.session)
        if self.toggle_via_rpc:
            result = await self.remote.rpc("toggle_like", {"note_id": note_id, "user_id": user_id})
            return self._liked_from_rpc(result)

        if await self.has_liked(note_id, user_id):
            await self.remote.delete(
                self.likes_table, filters={"note_id": note_id, "user_id": user_id}
            )
            self._log_operation("Note unliked", note_id=note_id, user_id=user_id)
            return False

        try:
            await self.remote.insert(self.likes_table, {"note_id": note_id, "user_id": user_id})
        except ConflictError:
            self._log_debug("Like already present", note_id=note_id, user_id=user_id)
            return True
        self._log_operation("Note liked", note_id=note_id, user_id=user_id)
        return True

    @staticmethod
    def _liked_from_rpc(result: Any) -> bool:
        if isinstance(result, list):
            result = result[0] if result else False
        if isinstance(result, dict):
            result = result.get("liked", False)
        return bool(result)

    async def fetch_likers(self, note_id: str) -> list[LikeRow]:
        """Likes on a note with the liker's profile, newest first."""
        rows = await self.remote.select(
            self.likes_table,
            columns=_PROFILE_COLUMNS,
            filters={"note_id": note_id},
            order="created_at",
            descending=True,
        )
        return [LikeRow.model_validate(row) for row in rows]

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    async def fetch_comments(self, note_id: str) -> list[CommentRow]:
        """Comments on a note with author profiles, oldest first."""
        rows = await self.remote.select(
            self.comments_table,
            columns=_PROFILE_COLUMNS,
            filters={"note_id": note_id},
            order="created_at",
        )
        return [CommentRow.model_validate(row) for row in rows]

    async def add_comment(self, note_id: str, text: str) -> CommentRow:
        """
        Post a comment as the signed-in user.

        Raises:
            ValidationError: If text is empty
            AuthenticationError: If no user is signed in
        """
        self._validate_required({"content": text}, ["content"])
        user_id = require_user_id(self.session)
        stored = await self.remote.insert(
            self.comments_table,
            {"note_id": note_id, "user_id": user_id, "content": text.strip()},
        )
        self._log_operation("Comment added", note_id=note_id, comment_id=stored.get("id"))
        return CommentRow.model_validate(stored)

    async def update_comment(self, comment_id: str, text: str) -> CommentRow:
        """
        Edit one of the caller's comments.

        Raises:
            ValidationError: If text is empty
            AuthenticationError: If no user is signed in
            AuthorizationError: If the remote store refuses the edit
            NotFoundError: If no comment of the caller has that id
        """
        self._validate_required({"content": text}, ["content"])
        user_id = require_user_id(self.session)
        rows = await self.remote.update(
            self.comments_table,
            {"content": text.strip(), "updated_at": utc_now().isoformat()},
            filters={"id": comment_id, "user_id": user_id},
        )
        if not rows:
            raise NotFoundError("Comment not found")
        self._log_operation("Comment updated", comment_id=comment_id)
        return CommentRow.model_validate(rows[0])

    async def delete_comment(self, comment_id: str) -> None:
        """
        Delete one of the caller's comments.

        Raises:
            AuthenticationError: If no user is signed in
            AuthorizationError: If the remote store refuses the delete
            NotFoundError: If no comment of the caller has that id
        """
        user_id = require_user_id(self.session)
        rows = await self.remote.delete(
            self.comments_table, filters={"id": comment_id, "user_id": user_id}
        )
        if not rows:
            raise NotFoundError("Comment not found")
        self._log_operation("Comment deleted", comment_id=comment_id)
