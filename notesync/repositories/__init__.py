"""Local store adapter and remote repositories."""

from notesync.repositories.category import CategoryRepository
from notesync.repositories.local import LocalStore, SqlLocalStore
from notesync.repositories.note import NoteRepository
from notesync.repositories.pending_delete import PendingDeleteRepository
from notesync.repositories.public_note import PublicNoteRepository
from notesync.repositories.storage import ProfileMediaRepository
from notesync.repositories.synced_note import SyncedNoteRepository

__all__ = [
    "CategoryRepository",
    "LocalStore",
    "NoteRepository",
    "PendingDeleteRepository",
    "ProfileMediaRepository",
    "PublicNoteRepository",
    "SqlLocalStore",
    "SyncedNoteRepository",
]
