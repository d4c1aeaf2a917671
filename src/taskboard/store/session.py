"""Session context with single-flight token refresh."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from ..errors import StoreAuthError

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Credentials issued by the identity provider."""

    access_token: str
    refresh_token: str | None = None
    expires_at: float | None = None  # Epoch seconds; None = never expires


class SessionManager:
    """Holds the current session and refreshes it when it is about to expire.

    Only one refresh is ever in flight. Callers that need a token while a
    refresh is running await the same pending refresh instead of starting
    their own, so a burst of requests after expiry produces a single call
    to the identity provider.

    The manager is created per store client and injected; there is no
    process-wide session.
    """

    REFRESH_SKEW = 60.0  # Refresh this many seconds before expiry

    def __init__(
        self,
        session: Session,
        http: httpx.AsyncClient,
        auth_url: str,
        api_key: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the session manager.

        Args:
            session: Initial credentials
            http: HTTP client used for refresh calls
            auth_url: Base URL of the auth API (e.g. https://x.supabase.co/auth/v1)
            api_key: Project API key sent with refresh calls
            clock: Time source, replaceable in tests
        """
        self._session = session
        self._http = http
        self._auth_url = auth_url.rstrip("/")
        self._api_key = api_key
        self._clock = clock
        self._refresh_task: asyncio.Task[Session] | None = None

    @property
    def session(self) -> Session:
        """The current session."""
        return self._session

    @property
    def refreshing(self) -> bool:
        """Whether a refresh is currently in flight."""
        return self._refresh_task is not None

    def is_expiring(self) -> bool:
        """Whether the access token expires within the refresh skew."""
        if self._session.expires_at is None:
            return False
        return self._clock() >= self._session.expires_at - self.REFRESH_SKEW

    async def access_token(self) -> str:
        """Return a valid access token, refreshing first if needed."""
        if self.is_expiring():
            await self.refresh()
        return self._session.access_token

    async def refresh(self) -> Session:
        """Refresh the session, joining a refresh already in flight."""
        task = self._refresh_task
        if task is None:
            task = asyncio.ensure_future(self._refresh())
            task.add_done_callback(self._refresh_done)
            self._refresh_task = task
            logger.debug("Session refresh started")
        else:
            logger.debug("Session refresh already in flight, waiting")

        # Shield so one cancelled caller does not cancel the refresh for the others
        return await asyncio.shield(task)

    def _refresh_done(self, task: asyncio.Task[Session]) -> None:
        if self._refresh_task is task:
            self._refresh_task = None

    async def _refresh(self) -> Session:
        refresh_token = self._session.refresh_token
        if not refresh_token:
            raise StoreAuthError("Session expired and no refresh token is available")

        try:
            response = await self._http.post(
                f"{self._auth_url}/token",
                params={"grant_type": "refresh_token"},
                json={"refresh_token": refresh_token},
                headers={"apikey": self._api_key},
            )
        except httpx.RequestError as e:
            logger.error("Session refresh failed: %s", e)
            raise StoreAuthError(f"Session refresh failed: {e}") from e

        if response.status_code >= 400:
            logger.error("Session refresh rejected: HTTP %d", response.status_code)
            raise StoreAuthError("Your session has expired. Please sign in again.")

        try:
            data = response.json()
            access_token = data["access_token"]
        except (ValueError, KeyError) as e:
            raise StoreAuthError(f"Invalid refresh response: {e}") from e

        expires_at = data.get("expires_at")
        if expires_at is None and data.get("expires_in") is not None:
            expires_at = self._clock() + float(data["expires_in"])

        self._session = Session(
            access_token=access_token,
            refresh_token=data.get("refresh_token", refresh_token),
            expires_at=float(expires_at) if expires_at is not None else None,
        )
        logger.info("Session refreshed")
        return self._session
