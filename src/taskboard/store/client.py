"""Async client for a PostgREST-style table API."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ..errors import (
    StoreAuthError,
    StoreConflictError,
    StoreError,
    StoreForbiddenError,
    StoreNotFoundError,
)
from .session import SessionManager

logger = logging.getLogger(__name__)

# PostgreSQL error classes reported in the "code" field of error bodies
_CONSTRAINT_CODE_PREFIXES = ("23", "P0")


class StoreClient:
    """Thin async wrapper around a PostgREST table API.

    Provides:
    - ``apikey`` and bearer authentication, with the token supplied by an
      injected ``SessionManager``
    - One forced session refresh and retry on 401
    - Mapping of HTTP and database errors to ``StoreError`` subclasses
    - Request timing in the logs
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        session: SessionManager | None = None,
        http: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the store client.

        Args:
            base_url: Project URL, e.g. https://abc.supabase.co
            api_key: Project API key
            session: Session manager providing user access tokens. Without
                one, the API key is used as the bearer token.
            http: HTTP client to use (created and owned if omitted)
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self._rest_url = f"{self.base_url}/rest/v1"
        self._api_key = api_key
        self._session = session
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the HTTP client if this client created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> StoreClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # --- Table operations ---

    async def select(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        """Select rows. ``params`` use PostgREST filter syntax (``{"id": "eq.1"}``)."""
        response = await self.request("GET", table, params=params)
        return self._rows(response, table)

    async def count(self, table: str, params: dict[str, str]) -> int:
        """Count rows matching the filters without fetching them."""
        response = await self.request(
            "GET",
            table,
            params={**params, "select": "id", "limit": "0"},
            prefer="count=exact",
        )
        content_range = response.headers.get("Content-Range", "")
        total = content_range.rpartition("/")[2]
        if total.isdigit():
            return int(total)
        raise StoreError(f"{table}: missing row count in response")

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return it as stored."""
        response = await self.request(
            "POST", table, json=row, prefer="return=representation"
        )
        rows = self._rows(response, table)
        if not rows:
            raise StoreError(f"{table}: insert returned no row")
        return rows[0]

    async def update(
        self, table: str, params: dict[str, str], fields: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Update matching rows and return them as stored."""
        response = await self.request(
            "PATCH", table, params=params, json=fields, prefer="return=representation"
        )
        return self._rows(response, table)

    async def delete(self, table: str, params: dict[str, str]) -> None:
        """Delete matching rows."""
        await self.request("DELETE", table, params=params)

    # --- Transport ---

    async def request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        """Issue one request against a table.

        Raises:
            StoreAuthError: Authentication failed after a refresh attempt
            StoreForbiddenError: Permission denied
            StoreNotFoundError: Table or resource not found
            StoreConflictError: Constraint violation
            StoreError: Other errors
        """
        op_name = f"{table}.{method.lower()}"
        response = await self._send(method, table, params, json, prefer, op_name)

        if response.status_code == 401 and self._session is not None:
            logger.info("%s: 401, refreshing session and retrying", op_name)
            await self._session.refresh()
            response = await self._send(method, table, params, json, prefer, op_name)

        self._raise_for_status(response, op_name)
        return response

    async def _send(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None,
        json: Any,
        prefer: str | None,
        op_name: str,
    ) -> httpx.Response:
        headers = await self._headers()
        if prefer:
            headers["Prefer"] = prefer

        # Log request details (DEBUG level for payloads to avoid sensitive data at INFO)
        logger.debug("%s: params=%s json=%s", op_name, params, json)

        start_time = time.monotonic()
        try:
            response = await self._http.request(
                method,
                f"{self._rest_url}/{table}",
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("%s failed after %.0fms: %s", op_name, elapsed_ms, e)
            raise StoreError(f"Request failed: {e}") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000
        logger.info("%s: HTTP %d (%.0fms)", op_name, response.status_code, elapsed_ms)
        return response

    async def _headers(self) -> dict[str, str]:
        token = self._api_key
        if self._session is not None:
            token = await self._session.access_token()
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def _raise_for_status(self, response: httpx.Response, op_name: str) -> None:
        status = response.status_code
        if status < 400:
            return

        code, message = self._error_detail(response)
        logger.error("%s: HTTP %d code=%s message=%s", op_name, status, code, message)

        if status == 401:
            raise StoreAuthError("Authentication failed. Please sign in again.")
        if status == 403:
            raise StoreForbiddenError(message or "Permission denied")
        if status == 404:
            raise StoreNotFoundError(message or "Resource not found")
        if status == 409 or (code and code.startswith(_CONSTRAINT_CODE_PREFIXES)):
            raise StoreConflictError(message or "Constraint violation")
        raise StoreError(f"HTTP {status}: {message or response.text}")

    @staticmethod
    def _error_detail(response: httpx.Response) -> tuple[str | None, str | None]:
        try:
            body = response.json()
        except ValueError:
            return None, None
        if not isinstance(body, dict):
            return None, None
        return body.get("code"), body.get("message")

    @staticmethod
    def _rows(response: httpx.Response, table: str) -> list[dict[str, Any]]:
        if not response.content:
            return []
        try:
            data = response.json()
        except ValueError as e:
            raise StoreError(f"{table}: invalid JSON response: {e}") from e
        if isinstance(data, dict):
            return [data]
        return list(data)
