"""Local record store models."""

from notesync.models.base import Base
from notesync.models.category import Category
from notesync.models.note import Note, NoteImage
from notesync.models.pending_delete import PendingDelete

__all__ = [
    "Base",
    "Category",
    "Note",
    "NoteImage",
    "PendingDelete",
]
