"""Remote store contract and implementations."""

from notesync.remote.base import Filters, RemoteStore, Row
from notesync.remote.http import HttpRemoteStore, raise_for_status
from notesync.remote.memory import InMemoryRemoteStore

__all__ = [
    "Filters",
    "HttpRemoteStore",
    "InMemoryRemoteStore",
    "RemoteStore",
    "Row",
    "raise_for_status",
]
