"""Tests for ClientContext construction and end-to-end wiring."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from runners_client.auth.events import AuthEvent, LogoutReason
from runners_client.auth.refresh import RefreshStrategy
from runners_client.auth.token_storage import MemoryStorage
from runners_client.auth.token_store import SessionToken
from runners_client.config import AuthConfig, BackendConfig, ClientConfig, LoggingConfig
from runners_client.context import build_client_context, open_client_context
from runners_client.exceptions import SessionExpiredError


def _config(tmp_path: Path, **auth: str) -> ClientConfig:
    return ClientConfig(
        backend=BackendConfig(base_url="https://api.runners.test/"),
        auth=AuthConfig(storage="memory", **auth),
        logging=LoggingConfig(log_dir=str(tmp_path)),
    )


class TestBuildClientContext:
    async def test_wiring(self, tmp_path: Path, backend):
        ctx = build_client_context(_config(tmp_path), storage=MemoryStorage(), transport=backend.transport)
        try:
            assert ctx.credentials is None
            assert ctx.refresher.strategy is RefreshStrategy.STRICT
            assert ctx.client.base_url.host == "api.runners.test"
            assert ctx.auth_logger is None
            assert ctx.client.http_client.headers["User-Agent"].startswith("runners-client/")
        finally:
            await ctx.aclose()

        assert ctx.client.http_client.is_closed

    async def test_persisted_mode_creates_credential_store(self, tmp_path: Path, backend):
        ctx = build_client_context(
            _config(tmp_path, refresh_credential="persisted", refresh_strategy="soft"),
            storage=MemoryStorage(),
            transport=backend.transport,
        )
        try:
            assert ctx.credentials is not None
            assert ctx.refresher.strategy is RefreshStrategy.SOFT
        finally:
            await ctx.aclose()

    async def test_contexts_are_isolated(self, tmp_path: Path, backend):
        first = build_client_context(_config(tmp_path), storage=MemoryStorage(), transport=backend.transport)
        second = build_client_context(_config(tmp_path), storage=MemoryStorage(), transport=backend.transport)
        try:
            first.session.login("only-first")

            assert second.store.get() is None
            assert first.bus is not second.bus
        finally:
            await first.aclose()
            await second.aclose()

    async def test_audit_log_enabled(self, tmp_path: Path, backend):
        config = _config(tmp_path)
        ctx = build_client_context(config, storage=MemoryStorage(), transport=backend.transport, enable_audit_log=True)
        try:
            ctx.session.login("access")
            ctx.session.logout()
        finally:
            await ctx.aclose()

        lines = config.logging.auth_log_path.read_text().splitlines()
        assert len(lines) == 3


class TestOpenClientContext:
    async def test_loads_persisted_token(self, tmp_path: Path, backend):
        storage = MemoryStorage({"access_token": SessionToken(value="saved").to_json()})

        async with open_client_context(_config(tmp_path), storage=storage, transport=backend.transport) as ctx:
            assert ctx.session.current_token.value == "saved"

    async def test_watch_storage_starts_sync(self, tmp_path: Path, backend):
        async with open_client_context(
            _config(tmp_path), storage=MemoryStorage(), transport=backend.transport, watch_storage=True
        ) as ctx:
            assert ctx.sync.is_running

        assert not ctx.sync.is_running

    async def test_expired_session_end_to_end(self, tmp_path: Path, backend):
        """A rejected refresh ends the session and notifies subscribers exactly once."""
        # Arrange
        storage = MemoryStorage({"access_token": SessionToken(value="A").to_json()})
        backend.add("GET", "/api/users/me", 401)
        backend.add("POST", "/api/auth/refresh", 401, json_body={"message": "Refresh token expired"})
        received: list[AuthEvent] = []

        # Act
        async with open_client_context(_config(tmp_path), storage=storage, transport=backend.transport) as ctx:
            ctx.bus.subscribe(received.append)
            with pytest.raises(SessionExpiredError, match="Refresh token expired"):
                await ctx.users.get_me()

        # Assert
        assert [e.reason for e in received] == [LogoutReason.SESSION_EXPIRED]
        assert storage.load("access_token") is None

    async def test_closes_on_error(self, tmp_path: Path, backend):
        with pytest.raises(RuntimeError):
            async with open_client_context(_config(tmp_path), storage=MemoryStorage(), transport=backend.transport) as ctx:
                raise RuntimeError("boom")

        assert ctx.client.http_client.is_closed

    async def test_transport_is_used_for_requests(self, tmp_path: Path):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={"unreadCount": 2})

        async with open_client_context(
            _config(tmp_path), storage=MemoryStorage(), transport=httpx.MockTransport(handler)
        ) as ctx:
            assert await ctx.notifications.unread_count() == 2

        assert seen == ["https://api.runners.test/api/notifications/unread-count"]
