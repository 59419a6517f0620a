"""
CLI Commands.

Organized by domain/feature area.
"""

from notesync.cli.commands.categories import app as categories_app
from notesync.cli.commands.identity import app as identity_app
from notesync.cli.commands.notes import app as notes_app
from notesync.cli.commands.sync import app as sync_app

__all__ = [
    "categories_app",
    "identity_app",
    "notes_app",
    "sync_app",
]
