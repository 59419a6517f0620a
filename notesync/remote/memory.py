"""
In-Memory Remote Store.

A process-local RemoteStore that enforces the constraints the core relies
on: primary-key uniqueness on ``id`` for every table plus any declared
unique column groups (e.g. one like per note and user). Used for offline
development and as the remote side of integration tests.

Embedded selects of the form ``"*, profiles(username)"`` are resolved
against a ``profiles`` table through the row's ``owner_id`` or ``user_id``.
"""

import copy
import re
from collections import defaultdict, deque
from collections.abc import Callable
from typing import Any

from notesync.core.exceptions import ConflictError, NotFoundError, RemoteStoreError
from notesync.core.utils import new_identifier, utc_now
from notesync.remote.base import Filters, Row

RpcHandler = Callable[["InMemoryRemoteStore", Row], Any]

_EMBED = re.compile(r"(\w+)\(([^)]*)\)")

DEFAULT_UNIQUE: dict[str, list[tuple[str, ...]]] = {
    "note_likes": [("note_id", "user_id")],
}


class InMemoryRemoteStore:
    """Dict-backed RemoteStore with primary key and unique constraints."""

    def __init__(
        self,
        unique: dict[str, list[tuple[str, ...]]] | None = None,
        base_url: str = "memory://local",
    ) -> None:
        self.tables: dict[str, dict[str, Row]] = defaultdict(dict)
        self.objects: dict[str, dict[str, bytes]] = defaultdict(dict)
        self.unique = unique if unique is not None else dict(DEFAULT_UNIQUE)
        self.base_url = base_url.rstrip("/")
        self.calls: list[tuple[str, str]] = []
        self._rpc: dict[str, RpcHandler] = {}
        self._failures: dict[str, deque[Exception]] = defaultdict(deque)

    # -------------------------------------------------------------------------
    # Test and wiring helpers
    # -------------------------------------------------------------------------

    def register_rpc(self, name: str, handler: RpcHandler) -> None:
        self._rpc[name] = handler

    def inject_failure(self, operation: str, error: Exception, times: int = 1) -> None:
        """Make the next ``times`` calls of ``operation`` raise ``error``."""
        for _ in range(times):
            self._failures[operation].append(error)

    def rows(self, table: str) -> list[Row]:
        return [copy.deepcopy(row) for row in self.tables[table].values()]

    def _enter(self, operation: str, target: str) -> None:
        self.calls.append((operation, target))
        pending = self._failures.get(operation)
        if pending:
            raise pending.popleft()

    # -------------------------------------------------------------------------
    # Matching
    # -------------------------------------------------------------------------

    @staticmethod
    def _matches(row: Row, filters: Filters | None) -> bool:
        for column, value in (filters or {}).items():
            current = row.get(column)
            if value is None:
                if current is not None:
                    return False
            elif str(current).lower() != str(value).lower():
                return False
        return True

    def _check_unique(self, table: str, row: Row, ignore_id: str | None = None) -> None:
        for columns in self.unique.get(table, []):
            key = tuple(row.get(c) for c in columns)
            for existing in self.tables[table].values():
                if existing["id"] == ignore_id:
                    continue
                if tuple(existing.get(c) for c in columns) == key:
                    raise ConflictError(
                        f"duplicate key value violates unique constraint on {table}{columns}"
                    )

    def _embed(self, row: Row, columns: str) -> Row:
        result = copy.deepcopy(row)
        for relation, fields in _EMBED.findall(columns):
            foreign = row.get("owner_id") or row.get("user_id")
            target = self.tables.get(relation, {}).get(str(foreign)) if foreign else None
            if target is None:
                result[relation] = None
                continue
            wanted = [f.strip() for f in fields.split(",") if f.strip()]
            result[relation] = {f: target.get(f) for f in wanted} if wanted else dict(target)
        return result

    # -------------------------------------------------------------------------
    # Rows
    # -------------------------------------------------------------------------

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
        self._enter("select", table)
        matched = [row for row in self.tables[table].values() if self._matches(row, filters)]
        if order:
            present = [row for row in matched if row.get(order) is not None]
            missing = [row for row in matched if row.get(order) is None]
            present.sort(key=lambda row: str(row[order]), reverse=descending)
            matched = present + missing
        if limit is not None:
            matched = matched[:limit]
        return [self._embed(row, columns) for row in matched]

    async def count(self, table: str, *, filters: Filters | None = None) -> int:
        self._enter("count", table)
        return sum(1 for row in self.tables[table].values() if self._matches(row, filters))

    async def insert(self, table: str, row: Row) -> Row:
        self._enter("insert", table)
        stored = copy.deepcopy(row)
        stored["id"] = str(stored.get("id") or new_identifier())
        stored.setdefault("created_at", utc_now().isoformat())
        if stored["id"] in self.tables[table]:
            raise ConflictError(f"duplicate key value violates primary key on {table}")
        self._check_unique(table, stored)
        self.tables[table][stored["id"]] = stored
        return copy.deepcopy(stored)

    async def update(self, table: str, values: Row, *, filters: Filters) -> list[Row]:
        self._enter("update", table)
        if not filters:
            raise RemoteStoreError("Refusing unfiltered update")
        changed = []
        for row in self.tables[table].values():
            if self._matches(row, filters):
                candidate = {**row, **copy.deepcopy(values), "id": row["id"]}
                self._check_unique(table, candidate, ignore_id=row["id"])
                row.update(candidate)
                changed.append(copy.deepcopy(row))
        return changed

    async def upsert(self, table: str, row: Row, *, on_conflict: str = "id") -> Row:
        self._enter("upsert", table)
        key = row.get(on_conflict)
        for existing in self.tables[table].values():
            if key is not None and str(existing.get(on_conflict)) == str(key):
                candidate = {**existing, **copy.deepcopy(row), "id": existing["id"]}
                self._check_unique(table, candidate, ignore_id=existing["id"])
                existing.update(candidate)
                return copy.deepcopy(existing)
        stored = copy.deepcopy(row)
        stored["id"] = str(stored.get("id") or new_identifier())
        stored.setdefault("created_at", utc_now().isoformat())
        self._check_unique(table, stored)
        self.tables[table][stored["id"]] = stored
        return copy.deepcopy(stored)

    async def delete(self, table: str, *, filters: Filters) -> list[Row]:
        self._enter("delete", table)
        if not filters:
            raise RemoteStoreError("Refusing unfiltered delete")
        doomed = [row_id for row_id, row in self.tables[table].items() if self._matches(row, filters)]
        return [self.tables[table].pop(row_id) for row_id in doomed]

    async def rpc(self, function: str, params: Row | None = None) -> Any:
        self._enter("rpc", function)
        handler = self._rpc.get(function)
        if handler is None:
            raise NotFoundError(f"Function {function} not found")
        result = handler(self, params or {})
        if hasattr(result, "__await__"):
            result = await result
        return result

    # -------------------------------------------------------------------------
    # Object storage
    # -------------------------------------------------------------------------

    async def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> str:
        self._enter("upload", bucket)
        if path in self.objects[bucket] and not upsert:
            raise ConflictError(f"Object {bucket}/{path} already exists")
        self.objects[bucket][path] = bytes(data)
        return path

    async def remove(self, bucket: str, paths: list[str]) -> None:
        self._enter("remove", bucket)
        for path in paths:
            self.objects[bucket].pop(path, None)

    async def list_objects(self, bucket: str, prefix: str = "") -> list[str]:
        self._enter("list_objects", bucket)
        return sorted(path for path in self.objects[bucket] if path.startswith(prefix))

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/{bucket}/{path}"
