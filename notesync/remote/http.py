"""
HTTP Remote Store.

RemoteStore over a PostgREST/Supabase-style REST surface:

    /rest/v1/{table}            select / insert / update / upsert / delete
    /rest/v1/rpc/{function}     stored procedures
    /storage/v1/object/...      object storage

Calls go through an aiobreaker circuit breaker; HTTP failures are mapped to
the application exception taxonomy. No retries happen here.

Usage:
    store = HttpRemoteStore(base_url, api_key, session=session)
    rows = await store.select("public_notes", filters={"owner_id": user_id})
    await store.close()
"""

from datetime import date, datetime
from typing import Any
from urllib.parse import quote

import aiobreaker
import httpx

from notesync.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RemoteStoreError,
    TransientError,
)
from notesync.core.logging import get_logger, log_with_source
from notesync.core.resilience import create_circuit_breaker
from notesync.core.session import SessionProvider
from notesync.remote.base import Filters, Row

logger = get_logger(__name__)

_TRANSIENT_STATUSES = frozenset({408, 425, 429, 500, 502, 503, 504})


def _filter_value(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    if isinstance(value, (date, datetime)):
        return f"eq.{value.isoformat()}"
    return f"eq.{value}"


def _filter_params(filters: Filters | None) -> dict[str, str]:
    return {column: _filter_value(value) for column, value in (filters or {}).items()}


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body.get("msg") or body)
    return str(body)


def raise_for_status(response: httpx.Response) -> None:
    """
    Map an HTTP error response onto the exception taxonomy.

    Raises:
        AuthenticationError: 401
        AuthorizationError: 403
        NotFoundError: 404
        ConflictError: 409
        TransientError: 408, 425, 429, 5xx
        RemoteStoreError: any other 4xx
    """
    status = response.status_code
    if status < 400:
        return
    message = _error_message(response)
    if status == 401:
        raise AuthenticationError(message)
    if status == 403:
        raise AuthorizationError(message)
    if status == 404:
        raise NotFoundError(message)
    if status == 409:
        raise ConflictError(message)
    if status in _TRANSIENT_STATUSES or status >= 500:
        raise TransientError(f"Remote store returned {status}: {message}")
    raise RemoteStoreError(message, status_code=status)


class HttpRemoteStore:
    """
    PostgREST-style remote store client.

    The access token is read from the session provider on every request so a
    sign-out takes effect immediately; the anon API key is used otherwise.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        session: SessionProvider | None = None,
        timeout: float = 15.0,
        breaker: aiobreaker.CircuitBreaker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._session = session
        self._breaker = breaker or create_circuit_breaker("remote_store")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _auth_headers(self) -> dict[str, str]:
        token = self._session.access_token() if self._session else None
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
        }

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        headers = {**self._auth_headers(), **kwargs.pop("headers", {})}
        try:
            response = await client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientError(f"Remote store timed out: {method} {path}") from e
        except httpx.TransportError as e:
            raise TransientError(f"Remote store unreachable: {e}") from e
        raise_for_status(response)
        return response

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request through the circuit breaker.

        Raises:
            TransientError: If the circuit is open or the transport fails
        """
        log_with_source(logger, "remote", "debug", "Remote request", method=method, path=path)
        try:
            response = await self._breaker.call_async(self._send, method, path, **kwargs)
        except aiobreaker.CircuitBreakerError as e:
            raise TransientError("Remote store circuit open") from e
        log_with_source(
            logger,
            "remote",
            "debug",
            "Remote response",
            method=method,
            path=path,
            status_code=response.status_code,
        )
        return response

    @staticmethod
    def _rows(response: httpx.Response) -> list[Row]:
        if not response.content:
            return []
        body = response.json()
        if isinstance(body, list):
            return body
        return [body]

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
        params = {"select": columns.replace(" ", ""), **_filter_params(filters)}
        if order:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(limit)
        response = await self.request("GET", f"/rest/v1/{table}", params=params)
        return self._rows(response)

    async def count(self, table: str, *, filters: Filters | None = None) -> int:
        params = {"select": "id", **_filter_params(filters)}
        response = await self.request(
            "HEAD",
            f"/rest/v1/{table}",
            params=params,
            headers={"Prefer": "count=exact"},
        )
        content_range = response.headers.get("content-range", "")
        _, _, total = content_range.partition("/")
        if not total or total == "*":
            raise RemoteStoreError(f"Count unavailable for {table}")
        return int(total)

    async def insert(self, table: str, row: Row) -> Row:
        response = await self.request(
            "POST",
            f"/rest/v1/{table}",
            json=row,
            headers={"Prefer": "return=representation"},
        )
        rows = self._rows(response)
        return rows[0] if rows else row

    async def update(self, table: str, values: Row, *, filters: Filters) -> list[Row]:
        if not filters:
            raise RemoteStoreError("Refusing unfiltered update")
        response = await self.request(
            "PATCH",
            f"/rest/v1/{table}",
            params=_filter_params(filters),
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return self._rows(response)

    async def upsert(self, table: str, row: Row, *, on_conflict: str = "id") -> Row:
        response = await self.request(
            "POST",
            f"/rest/v1/{table}",
            params={"on_conflict": on_conflict},
            json=row,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        rows = self._rows(response)
        return rows[0] if rows else row

    async def delete(self, table: str, *, filters: Filters) -> list[Row]:
        if not filters:
            raise RemoteStoreError("Refusing unfiltered delete")
        response = await self.request(
            "DELETE",
            f"/rest/v1/{table}",
            params=_filter_params(filters),
            headers={"Prefer": "return=representation"},
        )
        return self._rows(response)

    async def rpc(self, function: str, params: Row | None = None) -> Any:
        response = await self.request("POST", f"/rest/v1/rpc/{function}", json=params or {})
        if not response.content:
            return None
        return response.json()

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
        await self.request(
            "POST",
            f"/storage/v1/object/{bucket}/{quote(path)}",
            content=data,
            headers={
                "Content-Type": content_type,
                "x-upsert": str(upsert).lower(),
            },
        )
        return path

    async def remove(self, bucket: str, paths: list[str]) -> None:
        if not paths:
            return
        await self.request("DELETE", f"/storage/v1/object/{bucket}", json={"prefixes": paths})

    async def list_objects(self, bucket: str, prefix: str = "") -> list[str]:
        response = await self.request(
            "POST",
            f"/storage/v1/object/list/{bucket}",
            json={"prefix": prefix, "limit": 1000, "offset": 0},
        )
        base = prefix.rstrip("/")
        names = [item["name"] for item in self._rows(response) if item.get("name")]
        return [f"{base}/{name}" if base else name for name in names]

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{quote(path)}"
