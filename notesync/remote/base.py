"""
Remote Store Contract.

The vocabulary the core uses against the networked backend: per-table
row operations with equality filters and ordering, stored-procedure calls,
and an object storage API. Rows travel as JSON-ready dicts.

Every operation may raise:
    AuthenticationError  - no valid session (401)
    AuthorizationError   - caller may not touch the row (403)
    NotFoundError        - target missing (404)
    ConflictError        - duplicate primary/unique key (409)
    TransientError       - timeout, connectivity, 408/429/5xx, open circuit
    RemoteStoreError     - anything else
"""

from collections.abc import Mapping
from typing import Any, Protocol

Row = dict[str, Any]
Filters = Mapping[str, Any]


class RemoteStore(Protocol):
    """Row-oriented remote store."""

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Filters | None = None,
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        ...

    async def count(self, table: str, *, filters: Filters | None = None) -> int:
        ...

    async def insert(self, table: str, row: Row) -> Row:
        ...

    async def update(self, table: str, values: Row, *, filters: Filters) -> list[Row]:
        ...

    async def upsert(self, table: str, row: Row, *, on_conflict: str = "id") -> Row:
        ...

    async def delete(self, table: str, *, filters: Filters) -> list[Row]:
        ...

    async def rpc(self, function: str, params: Row | None = None) -> Any:
        ...

    async def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> str:
        ...

    async def remove(self, bucket: str, paths: list[str]) -> None:
        ...

    async def list_objects(self, bucket: str, prefix: str = "") -> list[str]:
        ...

    def public_url(self, bucket: str, path: str) -> str:
        ...
