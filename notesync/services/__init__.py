"""Services orchestrating the local store and the remote repositories."""

from notesync.services.social import SocialService
from notesync.services.sync import DedupReport, SyncManager, SyncReport

__all__ = [
    "DedupReport",
    "SocialService",
    "SyncManager",
    "SyncReport",
]
