"""In-memory access token cache mirrored to secret storage.

The TokenStore is the single holder of the current access token. Readers get
the cached value without I/O; writers replace it atomically, persist it
best-effort, and notify subscribers synchronously before returning.

External changes (another process or tab sharing the same storage logging in
or out) arrive through handle_external_change(). A present-to-absent
transition is reported on the auth event bus as a remote logout.
"""

from __future__ import annotations

__all__ = [
    "RefreshCredentialStore",
    "SessionToken",
    "TokenListener",
    "TokenOrigin",
    "TokenStore",
]

import hashlib
import threading
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from runners_client.auth.events import AuthEvent, AuthEventBus, LogoutReason
from runners_client.auth.token_storage import SecretStorage
from runners_client.constants import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY
from runners_client.exceptions import StorageError
from runners_client.telemetry.system.system_logger import get_system_logger


class TokenOrigin(str, Enum):
    """How the access token was obtained."""

    INITIAL_LOGIN = "initial_login"
    REFRESHED = "refreshed"


class SessionToken(BaseModel):
    """Opaque bearer access token with provenance.

    Attributes:
        value: Bearer string sent in the Authorization header.
        origin: Login or refresh.
        issued_at: UTC time the client received the token.
    """

    value: str = Field(min_length=1)
    origin: TokenOrigin = TokenOrigin.INITIAL_LOGIN
    issued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": True}

    @property
    def fingerprint(self) -> str:
        """Short SHA-256 prefix, safe to log."""
        return hashlib.sha256(self.value.encode()).hexdigest()[:12]

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.value}"

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str) -> "SessionToken":
        return cls.model_validate_json(data)

    def __repr__(self) -> str:
        return f"SessionToken(fingerprint={self.fingerprint!r}, origin={self.origin.value!r})"


TokenListener = Callable[[SessionToken | None], None]


def _same_token(a: SessionToken | None, b: SessionToken | None) -> bool:
    if a is None or b is None:
        return a is b
    return a.value == b.value


class TokenStore:
    """Current access token holder.

    Usage:
        store = TokenStore(storage, bus)
        store.load()
        unsubscribe = store.subscribe(lambda token: ...)
        store.set(SessionToken(value="..."))
        store.get()
        store.clear()
    """

    def __init__(
        self,
        storage: SecretStorage,
        bus: AuthEventBus,
        key: str = ACCESS_TOKEN_KEY,
    ) -> None:
        """Initialize token store.

        Args:
            storage: Persistence target for the token.
            bus: Event bus used to report remote logouts.
            key: Secret storage key for the persisted token.
        """
        self._storage = storage
        self._bus = bus
        self._key = key
        self._token: SessionToken | None = None
        self._listeners: list[TokenListener] = []
        self._lock = threading.RLock()

    @property
    def storage(self) -> SecretStorage:
        return self._storage

    def get(self) -> SessionToken | None:
        """Return the cached token. Never does I/O."""
        return self._token

    def load(self) -> SessionToken | None:
        """Populate the cache from storage without notifying subscribers.

        Returns:
            The loaded token, None if nothing usable is stored.
        """
        token = self._read_persisted()
        with self._lock:
            self._token = token
        return token

    def set(self, token: SessionToken) -> None:
        """Replace the current token, persist it, and notify subscribers."""
        with self._lock:
            self._token = token
            self._persist(token)
            self._notify(token)

    def clear(self) -> None:
        """Drop the current token, remove the persisted copy, and notify subscribers."""
        with self._lock:
            self._token = None
            try:
                self._storage.delete(self._key)
            except StorageError as e:
                get_system_logger().warning(
                    {
                        "event": "token_delete_failed",
                        "message": f"Failed to remove persisted access token: {e}",
                        "error_type": type(e).__name__,
                    }
                )
            self._notify(None)

    def subscribe(self, listener: TokenListener) -> Callable[[], None]:
        """Register a listener called with the new token on every change.

        Returns:
            Disposer that removes the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                try:
                    self._listeners.remove(listener)
                except ValueError:
                    pass

        return unsubscribe

    def handle_external_change(self, token: SessionToken | None) -> None:
        """Apply a token change made outside this process.

        Updates the cache and notifies subscribers without writing back to
        storage. Emits LoggedOut(REMOTE_LOGOUT) when a present token
        disappears.
        """
        with self._lock:
            previous = self._token
            if _same_token(previous, token):
                return
            self._token = token
            self._notify(token)

        if previous is not None and token is None:
            get_system_logger().info(
                {
                    "event": "remote_logout_detected",
                    "message": "Access token removed externally",
                    "token_fingerprint": previous.fingerprint,
                }
            )
            self._bus.emit(AuthEvent.logged_out(LogoutReason.REMOTE_LOGOUT))

    def sync_from_storage(self) -> bool:
        """Re-read storage and apply the result if it differs from the cache.

        The read happens under the store lock, so a set() or clear() that
        is still writing storage cannot be undone by a stale read.

        Returns:
            True if an external change was applied.
        """
        with self._lock:
            return self.apply_persisted(self._read_persisted(), expected=self._token)

    def read_persisted(self) -> SessionToken | None:
        """Read the persisted token without touching the cache."""
        return self._read_persisted()

    def apply_persisted(
        self,
        persisted: SessionToken | None,
        *,
        expected: SessionToken | None,
    ) -> bool:
        """Apply a token read from storage if the cache still holds `expected`.

        `expected` is the cached token from before the storage read. When a
        local set() or clear() ran in between, the read is stale and is
        dropped; the next sync sees the new state.

        Returns:
            True if an external change was applied.
        """
        with self._lock:
            if self._token is not expected or _same_token(persisted, expected):
                return False
            self.handle_external_change(persisted)
            return True

    def _read_persisted(self) -> SessionToken | None:
        try:
            raw = self._storage.load(self._key)
        except StorageError as e:
            get_system_logger().warning(
                {
                    "event": "token_load_failed",
                    "message": f"Failed to load access token from storage: {e}",
                    "error_type": type(e).__name__,
                }
            )
            return self._token
        if raw is None:
            return None
        try:
            return SessionToken.from_json(raw)
        except ValueError:
            # Legacy/plain entries hold the bare token string
            return SessionToken(value=raw) if raw.strip() else None

    def _persist(self, token: SessionToken) -> None:
        try:
            self._storage.save(self._key, token.to_json())
        except StorageError as e:
            get_system_logger().warning(
                {
                    "event": "token_persist_failed",
                    "message": f"Failed to persist access token: {e}",
                    "error_type": type(e).__name__,
                    "token_fingerprint": token.fingerprint,
                }
            )

    def _notify(self, token: SessionToken | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(token)
            except Exception as e:
                get_system_logger().error(
                    {
                        "event": "token_listener_failed",
                        "message": f"Token listener raised: {e}",
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                    }
                )


class RefreshCredentialStore:
    """Persisted refresh credential for the "persisted" credential mode."""

    def __init__(self, storage: SecretStorage, key: str = REFRESH_TOKEN_KEY) -> None:
        self._storage = storage
        self._key = key

    def get(self) -> str | None:
        try:
            return self._storage.load(self._key)
        except StorageError as e:
            get_system_logger().warning(
                {
                    "event": "refresh_credential_load_failed",
                    "message": f"Failed to load refresh credential: {e}",
                    "error_type": type(e).__name__,
                }
            )
            return None

    def set(self, value: str) -> None:
        try:
            self._storage.save(self._key, value)
        except StorageError as e:
            get_system_logger().warning(
                {
                    "event": "refresh_credential_persist_failed",
                    "message": f"Failed to persist refresh credential: {e}",
                    "error_type": type(e).__name__,
                }
            )

    def clear(self) -> None:
        try:
            self._storage.delete(self._key)
        except StorageError as e:
            get_system_logger().warning(
                {
                    "event": "refresh_credential_delete_failed",
                    "message": f"Failed to remove refresh credential: {e}",
                    "error_type": type(e).__name__,
                }
            )
