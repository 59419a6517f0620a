"""
Social Schemas.

Likes and comments on public notes, with the author profile the remote
store joins onto them.
"""

from datetime import datetime

from notesync.schemas.base import RemoteRow


class ProfileProjection(RemoteRow):
    """Public profile fields shown next to likes and comments."""

    username: str | None = None
    display_name: str | None = None
    profile_photo_url: str | None = None


class LikeRow(RemoteRow):
    """Schema for a like. At most one exists per (note_id, user_id)."""

    id: str
    note_id: str
    user_id: str
    created_at: datetime | None = None
    profiles: ProfileProjection | None = None


class CommentRow(RemoteRow):
    """Schema for a comment."""

    id: str
    note_id: str
    user_id: str
    content: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    profiles: ProfileProjection | None = None
