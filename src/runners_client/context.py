"""Client context: constructs and wires every runtime service.

One ClientContext per application (or per test). Nothing here is a module
global, so two contexts never share a token store, an event bus or a cookie
jar.

Wiring:
    http_client ─┬─ LogoutHandler(store, bus, credentials)
                 ├─ TokenRefresher(store, logout)
                 └─ AuthenticatedClient(store, refresher, logout)
                        └─ AuthApi / CommunityPostsApi / ... / UsersApi
    AuthSession(store, refresher, logout, auth_api)
    TokenSyncService(store)
    AuthLogger attached to bus + store (optional)

Usage:
    async with open_client_context(config) as ctx:
        await ctx.session.bootstrap()
        me = await ctx.users.get_me()
"""

from __future__ import annotations

__all__ = [
    "ClientContext",
    "build_client_context",
    "open_client_context",
]

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import httpx

from runners_client.api.auth import AuthApi
from runners_client.api.community import CommunityCommentsApi, CommunityPostsApi
from runners_client.api.notifications import NotificationsApi
from runners_client.api.users import UsersApi
from runners_client.auth.events import AuthEventBus
from runners_client.auth.refresh import RefreshStrategy, TokenRefresher
from runners_client.auth.session import AuthSession, LogoutHandler
from runners_client.auth.sync import TokenSyncService
from runners_client.auth.token_storage import SecretStorage, create_secret_storage
from runners_client.auth.token_store import RefreshCredentialStore, TokenStore
from runners_client.config import ClientConfig
from runners_client.http.client import AuthenticatedClient
from runners_client.http.transport import create_http_client
from runners_client.telemetry.audit.auth_logger import AuthLogger, create_auth_logger
from runners_client.telemetry.system.system_logger import (
    configure_system_logger_file,
    get_system_logger,
    set_console_level,
)


@dataclass
class ClientContext:
    """All services for one client instance."""

    config: ClientConfig
    storage: SecretStorage
    bus: AuthEventBus
    store: TokenStore
    credentials: RefreshCredentialStore | None
    refresher: TokenRefresher
    client: AuthenticatedClient
    session: AuthSession
    sync: TokenSyncService
    auth: AuthApi
    posts: CommunityPostsApi
    comments: CommunityCommentsApi
    notifications: NotificationsApi
    users: UsersApi
    auth_logger: AuthLogger | None = None
    _disposers: list[Callable[[], None]] = field(default_factory=list, repr=False)

    async def aclose(self) -> None:
        """Stop background work, detach listeners and close the HTTP client."""
        await self.sync.stop()
        for dispose in reversed(self._disposers):
            dispose()
        self._disposers.clear()
        await self.client.aclose()


def build_client_context(
    config: ClientConfig,
    *,
    storage: SecretStorage | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    enable_audit_log: bool = False,
) -> ClientContext:
    """Construct a fully wired ClientContext.

    Args:
        config: Client configuration.
        storage: Secret storage override (defaults to config.auth.storage).
        transport: httpx transport override (tests pass httpx.MockTransport).
        enable_audit_log: Write audit/auth.jsonl and the system log file
            under config.logging.

    Returns:
        ClientContext. Call aclose() (or use open_client_context) when done.
    """
    if config.logging.log_level == "DEBUG":
        set_console_level(logging.INFO)

    storage = storage or create_secret_storage(config.auth.storage)
    bus = AuthEventBus()
    store = TokenStore(storage, bus)
    credentials = (
        RefreshCredentialStore(storage) if config.auth.refresh_credential == "persisted" else None
    )

    http_client = create_http_client(config.backend, transport=transport)
    logout = LogoutHandler(store, bus, http_client, credentials)

    refresher = TokenRefresher(
        http_client,
        store,
        logout=logout,
        refresh_path=config.auth.refresh_path,
        strategy=RefreshStrategy(config.auth.refresh_strategy),
        credential_mode=config.auth.refresh_credential,
        credentials=credentials,
    )
    client = AuthenticatedClient(
        http_client,
        store,
        refresher,
        logout=logout,
        auth_path_prefix=config.auth.auth_path_prefix,
    )

    auth_api = AuthApi(client)
    session = AuthSession(store, refresher, logout, auth_api=auth_api, credentials=credentials)

    ctx = ClientContext(
        config=config,
        storage=storage,
        bus=bus,
        store=store,
        credentials=credentials,
        refresher=refresher,
        client=client,
        session=session,
        sync=TokenSyncService(store, config.auth.sync_interval_seconds),
        auth=auth_api,
        posts=CommunityPostsApi(client),
        comments=CommunityCommentsApi(client),
        notifications=NotificationsApi(client),
        users=UsersApi(client),
    )

    if enable_audit_log:
        configure_system_logger_file(config.logging.system_log_path)
        try:
            ctx.auth_logger = create_auth_logger(config.logging.auth_log_path)
        except OSError as e:
            get_system_logger().warning(
                {
                    "event": "auth_log_unavailable",
                    "message": f"Auth audit log disabled: {e}",
                    "log_path": str(config.logging.auth_log_path),
                }
            )
        else:
            ctx._disposers.append(ctx.auth_logger.attach(bus, store))

    return ctx


@asynccontextmanager
async def open_client_context(
    config: ClientConfig,
    *,
    storage: SecretStorage | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    enable_audit_log: bool = False,
    watch_storage: bool = False,
) -> AsyncIterator[ClientContext]:
    """Build a context, load the persisted token, and close everything on exit.

    Args:
        watch_storage: Start the TokenSyncService for cross-process changes.
    """
    ctx = build_client_context(
        config,
        storage=storage,
        transport=transport,
        enable_audit_log=enable_audit_log,
    )
    try:
        ctx.store.load()
        if watch_storage:
            await ctx.sync.start()
        yield ctx
    finally:
        await ctx.aclose()
