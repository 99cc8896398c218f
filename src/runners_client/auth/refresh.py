"""Access token refresh against the backend refresh endpoint.

When an access token is rejected, the refresh credential is exchanged for a
new access token without user interaction.

Flow:
1. POST the refresh endpoint with the refresh credential
   - cookie mode: the httpOnly refresh cookie travels in the cookie jar
   - persisted mode: {"refreshToken": ...} from secret storage
2. Read {"accessToken": ..., "refreshToken"?: ...} from the response
3. Store the new access token (and a rotated refresh token, if any)

Concurrent callers share one in-flight refresh: N simultaneous 401s produce a
single network call and every caller receives the same result.
"""

from __future__ import annotations

__all__ = [
    "LogoutCallback",
    "RefreshStrategy",
    "TokenRefresher",
]

import asyncio
from collections.abc import Callable
from enum import Enum
from typing import Literal

import httpx

from runners_client.auth.events import LogoutReason
from runners_client.auth.token_store import (
    RefreshCredentialStore,
    SessionToken,
    TokenOrigin,
    TokenStore,
)
from runners_client.constants import REFRESH_PATH
from runners_client.exceptions import RefreshFailure, SessionExpiredError
from runners_client.http.errors import parse_error_message
from runners_client.telemetry.system.system_logger import get_system_logger

LogoutCallback = Callable[[LogoutReason], None]


class RefreshStrategy(str, Enum):
    """What a failed refresh does.

    STRICT: raise RefreshFailure and force logout (session_expired).
    SOFT: return None and leave the session state to the caller.
    """

    STRICT = "strict"
    SOFT = "soft"


class TokenRefresher:
    """Refresh operation with a shared in-flight handle.

    Usage:
        refresher = TokenRefresher(http, store, logout=session.logout)
        token = await refresher.refresh()
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        store: TokenStore,
        *,
        logout: LogoutCallback,
        refresh_path: str = REFRESH_PATH,
        strategy: RefreshStrategy = RefreshStrategy.STRICT,
        credential_mode: Literal["cookie", "persisted"] = "cookie",
        credentials: RefreshCredentialStore | None = None,
    ) -> None:
        """Initialize refresher.

        Args:
            http_client: Client whose cookie jar carries the refresh cookie.
            store: Token store updated on success.
            logout: Called with SESSION_EXPIRED when a strict refresh fails.
            refresh_path: Refresh endpoint path (relative to the client's base_url).
            strategy: Failure behavior.
            credential_mode: Where the refresh credential comes from.
            credentials: Required for the "persisted" credential mode.
        """
        if credential_mode == "persisted" and credentials is None:
            raise ValueError("credentials store is required for persisted credential mode")

        self._http = http_client
        self._store = store
        self._logout = logout
        self._refresh_path = refresh_path
        self._strategy = strategy
        self._credential_mode = credential_mode
        self._credentials = credentials
        self._inflight: asyncio.Task[SessionToken | None] | None = None
        self._network_calls = 0

    @property
    def strategy(self) -> RefreshStrategy:
        return self._strategy

    @property
    def in_progress(self) -> bool:
        return self._inflight is not None

    @property
    def network_calls(self) -> int:
        """Number of refresh requests sent so far."""
        return self._network_calls

    async def refresh(self, strategy: RefreshStrategy | None = None) -> SessionToken | None:
        """Obtain a new access token, joining an in-flight refresh if one exists.

        Args:
            strategy: Override the configured strategy for a new refresh.
                Ignored when joining a refresh that is already running.

        Returns:
            The new token, or None when a soft refresh failed.

        Raises:
            RefreshFailure: Strict refresh failed (logout already forced).
            SessionExpiredError: Strict refresh rejected with 401/403.
            httpx.TransportError: Network failure; no logout is forced.
        """
        task = self._inflight
        if task is None:
            task = asyncio.ensure_future(self._refresh_once(strategy or self._strategy))
            self._inflight = task
            task.add_done_callback(self._on_refresh_done)
        else:
            get_system_logger().debug(
                {
                    "event": "token_refresh_joined",
                    "message": "Joining in-flight token refresh",
                }
            )

        # Shield so one cancelled caller does not cancel the refresh for the others
        return await asyncio.shield(task)

    def _on_refresh_done(self, task: asyncio.Task[SessionToken | None]) -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled():
            # Mark the exception retrieved when every waiter was cancelled
            task.exception()

    async def _refresh_once(self, strategy: RefreshStrategy) -> SessionToken | None:
        body: dict[str, str] | None = None
        if self._credential_mode == "persisted":
            assert self._credentials is not None
            credential = self._credentials.get()
            if not credential:
                return self._fail(strategy, "Missing refresh token", status_code=None)
            body = {"refreshToken": credential}

        self._network_calls += 1
        try:
            if body is None:
                response = await self._http.post(self._refresh_path)
            else:
                response = await self._http.post(self._refresh_path, json=body)
        except httpx.TransportError as e:
            get_system_logger().warning(
                {
                    "event": "token_refresh_network_error",
                    "message": f"Network error during token refresh: {e}",
                    "error_type": type(e).__name__,
                }
            )
            raise

        if not response.is_success:
            message, _ = parse_error_message(response)
            return self._fail(strategy, message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            data = None
        access_token = data.get("accessToken") if isinstance(data, dict) else None
        if not isinstance(access_token, str) or not access_token:
            return self._fail(strategy, "Missing access token", status_code=response.status_code)

        rotated = data.get("refreshToken")
        if self._credentials is not None and isinstance(rotated, str) and rotated:
            self._credentials.set(rotated)

        token = SessionToken(value=access_token, origin=TokenOrigin.REFRESHED)
        self._store.set(token)

        get_system_logger().info(
            {
                "event": "token_refreshed",
                "message": "Access token refreshed",
                "token_fingerprint": token.fingerprint,
                "refresh_token_rotated": bool(rotated),
            }
        )
        return token

    def _fail(
        self,
        strategy: RefreshStrategy,
        message: str,
        *,
        status_code: int | None,
    ) -> SessionToken | None:
        get_system_logger().warning(
            {
                "event": "token_refresh_failed",
                "message": f"Token refresh failed: {message}",
                "status_code": status_code,
                "strategy": strategy.value,
            }
        )

        if strategy is RefreshStrategy.SOFT:
            return None

        self._logout(LogoutReason.SESSION_EXPIRED)
        if status_code in (401, 403):
            raise SessionExpiredError(message, status_code)
        raise RefreshFailure(message, status_code)
