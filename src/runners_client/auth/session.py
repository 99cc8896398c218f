"""Login, logout and startup session flows.

LogoutHandler performs the logout side effects shared by forced and user
logouts. AuthSession builds the user-facing flows on top of it:

- login / login_with_google: store a fresh access token
- logout: end the session on request
- bootstrap: restore a session at startup (persisted token, else a silent refresh)
"""

from __future__ import annotations

__all__ = [
    "AuthSession",
    "LogoutHandler",
]

from typing import TYPE_CHECKING

import httpx

from runners_client.auth.events import AuthEvent, AuthEventBus, LogoutReason
from runners_client.auth.refresh import RefreshStrategy, TokenRefresher
from runners_client.auth.token_store import (
    RefreshCredentialStore,
    SessionToken,
    TokenOrigin,
    TokenStore,
)
from runners_client.telemetry.system.system_logger import get_system_logger

if TYPE_CHECKING:
    from runners_client.api.auth import AuthApi
    from runners_client.models.auth import GoogleLoginResponse


class LogoutHandler:
    """Clears local session state and announces the logout.

    Order: token store, refresh credential, cookie jar, then the
    logged_out event, so listeners observe a fully logged-out client.
    """

    def __init__(
        self,
        store: TokenStore,
        bus: AuthEventBus,
        http_client: httpx.AsyncClient,
        credentials: RefreshCredentialStore | None = None,
    ) -> None:
        self._store = store
        self._bus = bus
        self._http = http_client
        self._credentials = credentials

    def __call__(self, reason: LogoutReason) -> None:
        previous = self._store.get()
        self._store.clear()
        if self._credentials is not None:
            self._credentials.clear()
        self._http.cookies.clear()

        get_system_logger().info(
            {
                "event": "logged_out",
                "message": f"Session ended ({reason.value})",
                "reason": reason.value,
                "token_fingerprint": previous.fingerprint if previous else None,
            }
        )
        self._bus.emit(AuthEvent.logged_out(reason))


class AuthSession:
    """Session lifecycle for one client context.

    Usage:
        session = AuthSession(store, refresher, logout_handler, auth_api=auth_api)
        await session.bootstrap()
        await session.login_with_google(id_token)
        session.logout()
    """

    def __init__(
        self,
        store: TokenStore,
        refresher: TokenRefresher,
        logout_handler: LogoutHandler,
        *,
        auth_api: "AuthApi | None" = None,
        credentials: RefreshCredentialStore | None = None,
    ) -> None:
        self._store = store
        self._refresher = refresher
        self._logout = logout_handler
        self._auth_api = auth_api
        self._credentials = credentials

    @property
    def is_authenticated(self) -> bool:
        return self._store.get() is not None

    @property
    def current_token(self) -> SessionToken | None:
        return self._store.get()

    def login(self, access_token: str, refresh_token: str | None = None) -> SessionToken:
        """Install tokens obtained from a login response.

        Args:
            access_token: Bearer access token.
            refresh_token: Refresh credential to persist ("persisted" mode only).

        Returns:
            The stored session token.
        """
        token = SessionToken(value=access_token, origin=TokenOrigin.INITIAL_LOGIN)
        self._store.set(token)
        if refresh_token and self._credentials is not None:
            self._credentials.set(refresh_token)

        get_system_logger().info(
            {
                "event": "logged_in",
                "message": "Session started",
                "token_fingerprint": token.fingerprint,
            }
        )
        return token

    async def login_with_google(self, id_token: str) -> "GoogleLoginResponse":
        """Exchange a Google ID token for a backend session.

        Raises:
            HttpError: Backend rejected the ID token.
            RuntimeError: Session was built without an AuthApi.
        """
        if self._auth_api is None:
            raise RuntimeError("AuthSession has no AuthApi configured")
        response = await self._auth_api.google_login(id_token)
        self.login(response.access_token, response.refresh_token)
        return response

    def logout(self, reason: LogoutReason = LogoutReason.USER_LOGOUT) -> None:
        """End the session and emit logged_out(reason)."""
        self._logout(reason)

    async def bootstrap(self) -> SessionToken | None:
        """Restore the session at startup.

        Loads the persisted access token. Without one, tries a soft refresh
        using the refresh credential; a failure leaves the client logged out
        without emitting a logout event.

        Returns:
            The restored token, or None when no session could be restored.
        """
        token = self._store.load()
        if token is not None:
            return token
        try:
            return await self._refresher.refresh(strategy=RefreshStrategy.SOFT)
        except httpx.TransportError as e:
            get_system_logger().warning(
                {
                    "event": "bootstrap_refresh_failed",
                    "message": f"Could not reach backend to restore session: {e}",
                    "error_type": type(e).__name__,
                }
            )
            return None
