"""
Remote Note Schemas.

Row shapes of the two note mirrors in the remote store:

    public_notes   - the world-readable copy of notes marked public
    synced_notes   - the owner-only copy used by full sync, with tombstones

Both are derived projections of the local Note and can be rebuilt from it.
"""

import datetime as dt

from pydantic import Field

from notesync.schemas.base import RemoteRow


class ProfileData(RemoteRow):
    """Author projection joined onto a public note."""

    username: str | None = None


class PublicNoteRow(RemoteRow):
    """Schema for a row of the public notes mirror."""

    id: str
    owner_id: str
    category_id: str | None = None
    content: str = ""
    rtf_content: str | None = None
    date: dt.date | None = None
    location_name: str | None = Field(default=None, alias="locationName")
    location_latitude: float | None = Field(default=None, alias="locationLatitude")
    location_longitude: float | None = Field(default=None, alias="locationLongitude")
    color_string: str = Field(default="", alias="colorString")
    symbol: str = ""
    is_anonymous: bool = Field(default=False, alias="isAnnonymous")
    created_at: dt.datetime | None = None
    profiles: ProfileData | None = None

    @property
    def author_name(self) -> str | None:
        """Display name of the author, hidden for anonymous notes."""
        if self.is_anonymous or self.profiles is None:
            return None
        return self.profiles.username


class SyncedNoteRow(RemoteRow):
    """
    Schema for a row of the private synced notes mirror.

    Location coordinates travel as strings in this table. ``is_deleted``
    marks a tombstone left by a delete on another device.
    """

    id: str
    owner_id: str
    category_id: str | None = None
    content: str = ""
    attributed_text_data: str | None = Field(default=None, alias="attributedTextData")
    date: dt.date | None = None
    location_name: str | None = Field(default=None, alias="locationName")
    location_locality: str | None = Field(default=None, alias="locationLocality")
    location_latitude: str | None = Field(default=None, alias="locationLatitude")
    location_longitude: str | None = Field(default=None, alias="locationLongitude")
    color_string: str = Field(default="", alias="colorString")
    symbol: str = ""
    last_modified: dt.datetime | None = None
    is_deleted: bool = False
    created_at: dt.datetime | None = None
    is_anonymous: bool | None = Field(default=None, alias="isAnonymous")
    is_public: bool | None = Field(default=None, alias="isPublic")
