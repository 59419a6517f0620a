"""Row schemas for the remote store tables."""

from notesync.schemas.remote import ProfileData, PublicNoteRow, SyncedNoteRow
from notesync.schemas.social import CommentRow, LikeRow, ProfileProjection

__all__ = [
    "CommentRow",
    "LikeRow",
    "ProfileData",
    "ProfileProjection",
    "PublicNoteRow",
    "SyncedNoteRow",
]
