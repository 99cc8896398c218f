"""Tests for TokenRefresher: strategies, coalescing and credential modes."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from runners_client.auth.events import AuthEvent, LogoutReason
from runners_client.auth.refresh import RefreshStrategy, TokenRefresher
from runners_client.auth.session import LogoutHandler
from runners_client.auth.token_storage import MemoryStorage
from runners_client.auth.token_store import (
    RefreshCredentialStore,
    SessionToken,
    TokenOrigin,
    TokenStore,
)
from runners_client.constants import REFRESH_PATH
from runners_client.exceptions import RefreshFailure, SessionExpiredError


@pytest.fixture
def soft_refresher(http_client: httpx.AsyncClient, store: TokenStore, logout: LogoutHandler) -> TokenRefresher:
    return TokenRefresher(http_client, store, logout=logout, strategy=RefreshStrategy.SOFT)


@pytest.fixture
def credentials(storage: MemoryStorage) -> RefreshCredentialStore:
    return RefreshCredentialStore(storage)


@pytest.fixture
def persisted_refresher(
    http_client: httpx.AsyncClient,
    store: TokenStore,
    bus,
    credentials: RefreshCredentialStore,
) -> TokenRefresher:
    logout = LogoutHandler(store, bus, http_client, credentials)
    return TokenRefresher(
        http_client,
        store,
        logout=logout,
        credential_mode="persisted",
        credentials=credentials,
    )


# ============================================================================
# Success
# ============================================================================


class TestRefreshSuccess:
    async def test_returns_and_stores_new_token(self, backend, refresher: TokenRefresher, store: TokenStore):
        # Arrange
        backend.add("POST", REFRESH_PATH, json_body={"accessToken": "new-token"})

        # Act
        token = await refresher.refresh()

        # Assert
        assert token is not None
        assert token.value == "new-token"
        assert token.origin is TokenOrigin.REFRESHED
        assert store.get() == token
        assert len(backend.calls("POST", REFRESH_PATH)) == 1

    async def test_refresh_request_carries_no_bearer(self, backend, refresher: TokenRefresher, store: TokenStore):
        store.set(SessionToken(value="old"))
        backend.add("POST", REFRESH_PATH, json_body={"accessToken": "new"})

        await refresher.refresh()

        assert backend.bearers("POST", REFRESH_PATH) == [None]

    async def test_subscribers_see_new_token_before_return(self, backend, refresher: TokenRefresher, store: TokenStore):
        seen: list[str] = []
        store.subscribe(lambda token: seen.append(token.value) if token else None)
        backend.add("POST", REFRESH_PATH, json_body={"accessToken": "new"})

        await refresher.refresh()

        assert seen == ["new"]


# ============================================================================
# Strict strategy
# ============================================================================


class TestStrictFailure:
    """Strict: raise and force logout with session_expired."""

    async def test_rejected_credential_raises_session_expired(
        self, backend, refresher: TokenRefresher, store: TokenStore, events: list[AuthEvent]
    ):
        # Arrange
        store.set(SessionToken(value="old"))
        backend.add(
            "POST",
            REFRESH_PATH,
            401,
            json_body={"status": 401, "errorCode": "REFRESH_TOKEN_INVALID", "message": "Invalid refresh token"},
        )

        # Act
        with pytest.raises(SessionExpiredError) as exc_info:
            await refresher.refresh()

        # Assert
        assert exc_info.value.message == "Invalid refresh token"
        assert exc_info.value.status_code == 401
        assert [e.reason for e in events] == [LogoutReason.SESSION_EXPIRED]
        assert store.get() is None

    async def test_server_error_raises_refresh_failure(self, backend, refresher: TokenRefresher, events: list[AuthEvent]):
        backend.add("POST", REFRESH_PATH, 500, text="upstream exploded")

        with pytest.raises(RefreshFailure) as exc_info:
            await refresher.refresh()

        assert not isinstance(exc_info.value, SessionExpiredError)
        assert exc_info.value.message == "upstream exploded"
        assert exc_info.value.status_code == 500
        assert [e.reason for e in events] == [LogoutReason.SESSION_EXPIRED]

    async def test_missing_access_token(self, backend, refresher: TokenRefresher, events: list[AuthEvent]):
        backend.add("POST", REFRESH_PATH, json_body={"tokenType": "Bearer"})

        with pytest.raises(RefreshFailure, match="Missing access token"):
            await refresher.refresh()

        assert len(events) == 1

    async def test_non_json_success_body(self, backend, refresher: TokenRefresher):
        backend.add("POST", REFRESH_PATH, text="ok")

        with pytest.raises(RefreshFailure, match="Missing access token"):
            await refresher.refresh()

    async def test_empty_body_error_uses_status(self, backend, refresher: TokenRefresher):
        backend.add("POST", REFRESH_PATH, 403)

        with pytest.raises(SessionExpiredError, match="HTTP 403"):
            await refresher.refresh()


# ============================================================================
# Soft strategy
# ============================================================================


class TestSoftFailure:
    async def test_returns_none_without_event(
        self, backend, soft_refresher: TokenRefresher, store: TokenStore, events: list[AuthEvent]
    ):
        store.set(SessionToken(value="old"))
        backend.add("POST", REFRESH_PATH, 401, json_body={"message": "expired"})

        result = await soft_refresher.refresh()

        assert result is None
        assert events == []
        assert store.get().value == "old"

    async def test_missing_access_token_returns_none(self, backend, soft_refresher: TokenRefresher):
        backend.add("POST", REFRESH_PATH, json_body={})

        assert await soft_refresher.refresh() is None

    async def test_per_call_override(self, backend, refresher: TokenRefresher, events: list[AuthEvent]):
        backend.add("POST", REFRESH_PATH, 401)

        result = await refresher.refresh(strategy=RefreshStrategy.SOFT)

        assert result is None
        assert events == []
        assert refresher.strategy is RefreshStrategy.STRICT


# ============================================================================
# Network failures
# ============================================================================


class TestNetworkFailure:
    async def test_transport_error_propagates_without_logout(
        self, backend, refresher: TokenRefresher, store: TokenStore, events: list[AuthEvent]
    ):
        # Arrange
        store.set(SessionToken(value="old"))

        def unreachable(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        backend.route("POST", REFRESH_PATH, unreachable)

        # Act / Assert
        with pytest.raises(httpx.ConnectError):
            await refresher.refresh()

        assert events == []
        assert store.get().value == "old"
        assert not refresher.in_progress

    async def test_timeout_propagates(self, backend, refresher: TokenRefresher):
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        backend.route("POST", REFRESH_PATH, slow)

        with pytest.raises(httpx.TimeoutException):
            await refresher.refresh()


# ============================================================================
# Coalescing
# ============================================================================


class TestCoalescing:
    """Concurrent callers share one in-flight refresh."""

    async def test_concurrent_callers_share_one_network_call(self, backend, refresher: TokenRefresher):
        # Arrange
        release = asyncio.Event()

        async def gated(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200, json={"accessToken": "shared"})

        backend.route("POST", REFRESH_PATH, gated)

        # Act
        tasks = [asyncio.create_task(refresher.refresh()) for _ in range(5)]
        await asyncio.sleep(0)
        assert refresher.in_progress
        release.set()
        results = await asyncio.gather(*tasks)

        # Assert
        assert {token.value for token in results} == {"shared"}
        assert len(backend.calls("POST", REFRESH_PATH)) == 1
        assert refresher.network_calls == 1
        assert not refresher.in_progress

    async def test_strict_failure_emits_once_for_all_callers(
        self, backend, refresher: TokenRefresher, events: list[AuthEvent]
    ):
        release = asyncio.Event()

        async def gated(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(401, json={"message": "expired"})

        backend.route("POST", REFRESH_PATH, gated)

        tasks = [asyncio.create_task(refresher.refresh()) for _ in range(3)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, SessionExpiredError) for r in results)
        assert len(events) == 1

    async def test_handle_cleared_after_completion(self, backend, refresher: TokenRefresher):
        backend.add("POST", REFRESH_PATH, json_body={"accessToken": "first"})
        backend.add("POST", REFRESH_PATH, json_body={"accessToken": "second"})

        first = await refresher.refresh()
        second = await refresher.refresh()

        assert first.value == "first"
        assert second.value == "second"
        assert len(backend.calls("POST", REFRESH_PATH)) == 2

    async def test_cancelled_caller_does_not_cancel_shared_refresh(
        self, backend, refresher: TokenRefresher, store: TokenStore
    ):
        # Arrange
        release = asyncio.Event()

        async def gated(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200, json={"accessToken": "survivor"})

        backend.route("POST", REFRESH_PATH, gated)
        cancelled = asyncio.create_task(refresher.refresh())
        waiting = asyncio.create_task(refresher.refresh())
        await asyncio.sleep(0)

        # Act
        cancelled.cancel()
        await asyncio.sleep(0)
        release.set()
        token = await waiting

        # Assert
        assert cancelled.cancelled()
        assert token.value == "survivor"
        assert store.get().value == "survivor"


# ============================================================================
# Persisted credential mode
# ============================================================================


class TestPersistedCredential:
    async def test_sends_stored_refresh_token(
        self, backend, persisted_refresher: TokenRefresher, credentials: RefreshCredentialStore
    ):
        credentials.set("refresh-1")
        backend.add("POST", REFRESH_PATH, json_body={"accessToken": "a2"})

        await persisted_refresher.refresh()

        assert backend.json_bodies("POST", REFRESH_PATH) == [{"refreshToken": "refresh-1"}]

    async def test_rotated_refresh_token_is_stored(
        self, backend, persisted_refresher: TokenRefresher, credentials: RefreshCredentialStore
    ):
        credentials.set("refresh-1")
        backend.add("POST", REFRESH_PATH, json_body={"accessToken": "a2", "refreshToken": "refresh-2"})

        await persisted_refresher.refresh()

        assert credentials.get() == "refresh-2"

    async def test_missing_credential_fails_without_network_call(
        self, backend, persisted_refresher: TokenRefresher, events: list[AuthEvent]
    ):
        with pytest.raises(RefreshFailure, match="Missing refresh token") as exc_info:
            await persisted_refresher.refresh()

        assert exc_info.value.status_code is None
        assert backend.calls("POST", REFRESH_PATH) == []
        assert [e.reason for e in events] == [LogoutReason.SESSION_EXPIRED]

    async def test_strict_failure_clears_credential(
        self, backend, persisted_refresher: TokenRefresher, credentials: RefreshCredentialStore
    ):
        credentials.set("refresh-1")
        backend.add("POST", REFRESH_PATH, 401, json_body={"message": "revoked"})

        with pytest.raises(SessionExpiredError):
            await persisted_refresher.refresh()

        assert credentials.get() is None

    def test_requires_credential_store(self, http_client: httpx.AsyncClient, store: TokenStore, logout):
        with pytest.raises(ValueError, match="credentials store is required"):
            TokenRefresher(http_client, store, logout=logout, credential_mode="persisted")
