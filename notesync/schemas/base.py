"""
Base Schemas.

Common configuration for remote row schemas. Remote column names are kept
verbatim as aliases (including historical spellings) while Python code
uses snake_case attribute names.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict


class RemoteRow(BaseModel):
    """Base class for rows exchanged with the remote store."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_remote(self, *, exclude: set[str] | None = None) -> dict[str, Any]:
        """JSON-ready dict keyed by remote column names."""
        return self.model_dump(by_alias=True, mode="json", exclude=exclude)
