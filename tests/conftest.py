"""Shared fixtures: a scripted backend behind httpx.MockTransport and wired auth services."""

from __future__ import annotations

import inspect
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import httpx
import pytest

from runners_client.auth.events import AuthEvent, AuthEventBus
from runners_client.auth.refresh import TokenRefresher
from runners_client.auth.session import LogoutHandler
from runners_client.auth.token_storage import MemoryStorage
from runners_client.auth.token_store import TokenStore
from runners_client.http.client import AuthenticatedClient
from runners_client.telemetry.system.system_logger import reset_system_logger

BASE_URL = "https://api.runners.test"

Handler = Callable[[httpx.Request], "httpx.Response | Awaitable[httpx.Response]"]


class FakeBackend:
    """Scripted backend.

    Routes are keyed by (method, path). A route is either a queue of canned
    responses (the last one repeats) or a handler callable, sync or async.
    Unrouted requests get a 404 JSON error.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[dict[str, Any]] | Handler] = {}

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        *,
        json_body: Any = None,
        text: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        queue = self._routes.setdefault((method, path), [])
        assert isinstance(queue, list), "route already has a handler"
        queue.append({"status": status, "json_body": json_body, "text": text, "headers": headers})

    def route(self, method: str, path: str, handler: Handler) -> None:
        self._routes[(method, path)] = handler

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def bearers(self, method: str, path: str) -> list[str | None]:
        """Bearer token sent with each matching request (None when absent)."""
        return [bearer_of(r) for r in self.calls(method, path)]

    def json_bodies(self, method: str, path: str) -> list[Any]:
        return [body_of(r) for r in self.calls(method, path)]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"status": 404, "message": "Not Found"})
        if callable(route):
            result = route(request)
            if inspect.isawaitable(result):
                result = await result
            return result
        canned = route.pop(0) if len(route) > 1 else route[0]
        return make_response(**canned)


def make_response(
    status: int = 200,
    *,
    json_body: Any = None,
    text: str | None = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    if json_body is not None:
        return httpx.Response(status, json=json_body, headers=headers)
    if text is not None:
        return httpx.Response(status, text=text, headers=headers)
    return httpx.Response(status, headers=headers)


def bearer_of(request: httpx.Request) -> str | None:
    value = request.headers.get("Authorization")
    if value is None:
        return None
    return value.removeprefix("Bearer ")


def body_of(request: httpx.Request) -> Any:
    return json.loads(request.content) if request.content else None


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _fresh_system_logger():
    """Each test starts with a fresh system logger singleton."""
    reset_system_logger()
    yield
    reset_system_logger()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def bus() -> AuthEventBus:
    return AuthEventBus()


@pytest.fixture
def events(bus: AuthEventBus) -> list[AuthEvent]:
    """Every event emitted on the bus, in order."""
    received: list[AuthEvent] = []
    bus.subscribe(received.append)
    return received


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage, bus: AuthEventBus) -> TokenStore:
    return TokenStore(storage, bus)


@pytest.fixture
async def http_client(backend: FakeBackend) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(base_url=BASE_URL, transport=backend.transport) as client:
        yield client


@pytest.fixture
def logout(store: TokenStore, bus: AuthEventBus, http_client: httpx.AsyncClient) -> LogoutHandler:
    return LogoutHandler(store, bus, http_client)


@pytest.fixture
def refresher(
    http_client: httpx.AsyncClient, store: TokenStore, logout: LogoutHandler
) -> TokenRefresher:
    return TokenRefresher(http_client, store, logout=logout)


@pytest.fixture
def client(
    http_client: httpx.AsyncClient,
    store: TokenStore,
    refresher: TokenRefresher,
    logout: LogoutHandler,
) -> AuthenticatedClient:
    return AuthenticatedClient(http_client, store, refresher, logout=logout)
