"""Authenticated HTTP client for the Runners backend.

Wraps an httpx.AsyncClient and handles the bearer token lifecycle per call:

    send with current token
      ├─ not 401 → return (2xx) or raise HttpError
      └─ 401 → refresh once → retry once with the new token
                 ├─ retry 2xx → return
                 └─ retry non-2xx → raise HttpError (401/403 forces logout)

The bearer header is only attached to requests for the backend origin, never
to auth endpoints, and never over an Authorization header the caller set.
Requests without an attached bearer are not refreshed on 401.
"""

from __future__ import annotations

__all__ = [
    "AuthenticatedClient",
]

import asyncio
from collections.abc import Callable
from typing import Any

import httpx

from runners_client.auth.events import LogoutReason
from runners_client.auth.refresh import RefreshStrategy, TokenRefresher
from runners_client.auth.token_store import SessionToken, TokenStore
from runners_client.constants import AUTH_PATH_PREFIX
from runners_client.exceptions import HttpError, RequestCancelledError
from runners_client.http.errors import http_error_from_response
from runners_client.telemetry.system.system_logger import get_system_logger

# Retry statuses that mean the fresh token is not accepted either
_RETRY_LOGOUT_STATUSES = frozenset({401, 403})

# httpx arguments that produce the request body
_BODY_ARGUMENTS = ("content", "data", "files", "json")


def _check_cancelled(cancel_event: asyncio.Event | None, method: str, url: httpx.URL) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise RequestCancelledError(f"{method} {url.path} cancelled")


class AuthenticatedClient:
    """Fetch client with bearer auth, refresh-on-401 and a single retry.

    Usage:
        async with AuthenticatedClient(http, store, refresher, logout=session.logout) as client:
            response = await client.get("/api/users/me")
            data = await client.request_json("GET", "/api/notifications/unread-count")
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        store: TokenStore,
        refresher: TokenRefresher,
        *,
        logout: Callable[[LogoutReason], None],
        auth_path_prefix: str = AUTH_PATH_PREFIX,
    ) -> None:
        """Initialize client.

        Args:
            http_client: Underlying client. Its base_url is the backend origin
                and its cookie jar carries the refresh cookie.
            store: Source of the current access token.
            refresher: Shared refresh operation.
            logout: Called with SESSION_EXPIRED when a retried request is
                still rejected (strict strategy only).
            auth_path_prefix: Paths that never carry a bearer token.
        """
        self._http = http_client
        self._store = store
        self._refresher = refresher
        self._logout = logout
        self._auth_path_prefix = auth_path_prefix

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._http

    @property
    def base_url(self) -> httpx.URL:
        return self._http.base_url

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        cancel_event: asyncio.Event | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request, refreshing the access token once on 401.

        Args:
            method: HTTP method.
            url: Path relative to the backend base URL, or an absolute URL.
            headers: Extra request headers.
            cancel_event: Set by the caller to abandon the call; checked
                after every await.
            **kwargs: Passed to httpx (params, json, content, data, files, timeout).
                Bodies of bearer requests are read into memory before the first
                send, so streamed content and file uploads survive the retry.

        Returns:
            The 2xx response (from the retry when a refresh happened).

        Raises:
            HttpError: Non-2xx response.
            RefreshFailure: Refresh failed (strict strategy).
            RequestCancelledError: cancel_event was set.
            httpx.TransportError: Network failure or timeout.
        """
        method = method.upper()
        request = self._build(method, url, headers, kwargs)
        authorized = self._wants_bearer(request)
        sent_token = self._attach_token(request) if authorized else None
        if authorized:
            # A 401 resends this body; read one-shot streams and uploads into memory
            await request.aread()

        _check_cancelled(cancel_event, method, request.url)
        response = await self._http.send(request)
        _check_cancelled(cancel_event, method, request.url)

        if response.status_code != 401:
            return self._ensure_success(method, response)

        if not authorized:
            # Auth endpoints, foreign origins and caller-supplied credentials
            raise self._failure(method, response)

        token = self._current_token_if_changed(sent_token)
        if token is None:
            token = await self._refresher.refresh()
            _check_cancelled(cancel_event, method, request.url)
            if token is None:
                # Soft refresh failure: report the first 401
                raise self._failure(method, response)

        get_system_logger().info(
            {
                "event": "request_retry",
                "message": f"Retrying {method} {request.url.path} with refreshed token",
                "method": method,
                "path": request.url.path,
                "token_fingerprint": token.fingerprint,
            }
        )

        retry = self._rebuild(request, url, headers, kwargs)
        retry.headers["Authorization"] = token.authorization_header
        retry_response = await self._http.send(retry)
        _check_cancelled(cancel_event, method, retry.url)

        if retry_response.is_success:
            return retry_response

        error = self._failure(method, retry_response)
        if (
            retry_response.status_code in _RETRY_LOGOUT_STATUSES
            and self._refresher.strategy is RefreshStrategy.STRICT
        ):
            self._logout(LogoutReason.SESSION_EXPIRED)
        raise error

    async def request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send a request and decode the JSON body (None for an empty body)."""
        response = await self.request(method, url, **kwargs)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    def clear_cookies(self) -> None:
        """Drop every cookie, including the refresh cookie."""
        self._http.cookies.clear()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AuthenticatedClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # =========================================================================
    # Internals
    # =========================================================================

    def _build(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None,
        kwargs: dict[str, Any],
    ) -> httpx.Request:
        return self._http.build_request(method, url, headers=headers, **kwargs)

    def _rebuild(
        self,
        first: httpx.Request,
        url: str,
        headers: dict[str, str] | None,
        kwargs: dict[str, Any],
    ) -> httpx.Request:
        """Build the retry of `first`, reusing its already-read body."""
        options = {name: value for name, value in kwargs.items() if name not in _BODY_ARGUMENTS}
        retry_headers = httpx.Headers(headers)
        if "Content-Type" in first.headers and "Content-Type" not in retry_headers:
            retry_headers["Content-Type"] = first.headers["Content-Type"]
        return self._http.build_request(
            first.method, url, headers=retry_headers, content=first.content, **options
        )

    def _wants_bearer(self, request: httpx.Request) -> bool:
        if "Authorization" in request.headers:
            return False
        if request.url.path.startswith(self._auth_path_prefix):
            return False
        return self._is_backend_origin(request.url)

    def _is_backend_origin(self, url: httpx.URL) -> bool:
        base = self._http.base_url
        if not base.host:
            return True
        return (url.scheme, url.host, url.port) == (base.scheme, base.host, base.port)

    def _attach_token(self, request: httpx.Request) -> SessionToken | None:
        token = self._store.get()
        if token is not None:
            request.headers["Authorization"] = token.authorization_header
        return token

    def _current_token_if_changed(self, sent: SessionToken | None) -> SessionToken | None:
        """Return the store's token when it differs from the one that got the 401."""
        current = self._store.get()
        if current is None:
            return None
        if sent is not None and current.value == sent.value:
            return None
        get_system_logger().debug(
            {
                "event": "stale_token_detected",
                "message": "Token changed while request was in flight, retrying without refresh",
                "token_fingerprint": current.fingerprint,
            }
        )
        return current

    def _ensure_success(self, method: str, response: httpx.Response) -> httpx.Response:
        if response.is_success:
            return response
        raise self._failure(method, response)

    def _failure(self, method: str, response: httpx.Response) -> HttpError:
        error = http_error_from_response(response)
        get_system_logger().info(
            {
                "event": "request_failed",
                "message": f"{method} {response.request.url.path} failed: {error.message}",
                "method": method,
                "path": response.request.url.path,
                "status_code": error.status_code,
                "error_code": error.error_code,
            }
        )
        return error
