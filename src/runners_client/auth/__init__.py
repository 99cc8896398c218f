"""Authentication: token persistence, refresh, session flows and auth events."""

from runners_client.auth.events import (
    AuthEvent,
    AuthEventBus,
    AuthEventType,
    LogoutReason,
)
from runners_client.auth.refresh import RefreshStrategy, TokenRefresher
from runners_client.auth.session import AuthSession, LogoutHandler
from runners_client.auth.sync import TokenSyncService
from runners_client.auth.token_storage import (
    EncryptedFileStorage,
    KeychainStorage,
    MemoryStorage,
    SecretStorage,
    create_secret_storage,
)
from runners_client.auth.token_store import (
    RefreshCredentialStore,
    SessionToken,
    TokenOrigin,
    TokenStore,
)

__all__ = [
    "AuthEvent",
    "AuthEventBus",
    "AuthEventType",
    "AuthSession",
    "EncryptedFileStorage",
    "KeychainStorage",
    "LogoutHandler",
    "LogoutReason",
    "MemoryStorage",
    "RefreshCredentialStore",
    "RefreshStrategy",
    "SecretStorage",
    "SessionToken",
    "TokenOrigin",
    "TokenRefresher",
    "TokenStore",
    "TokenSyncService",
    "create_secret_storage",
]
