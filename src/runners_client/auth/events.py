"""Auth event bus for session state transitions.

The bus delivers logout notifications to every interested component
(navigation, caches, the audit logger) without coupling them to the code
that detected the logout.

Events:
    logged_out(reason) where reason is one of:
    - session_expired: refresh credential rejected or retry still unauthorized
    - remote_logout: token removed by another process sharing the storage
    - user_logout: explicit logout requested by the user

Listener failures are isolated: a listener that raises is logged and the
remaining listeners still receive the event.
"""

from __future__ import annotations

__all__ = [
    "AuthEvent",
    "AuthEventBus",
    "AuthEventListener",
    "AuthEventType",
    "LogoutReason",
]

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from runners_client.telemetry.system.system_logger import get_system_logger


class AuthEventType(str, Enum):
    """Auth event types."""

    LOGGED_OUT = "logged_out"


class LogoutReason(str, Enum):
    """Why the session ended."""

    SESSION_EXPIRED = "session_expired"
    REMOTE_LOGOUT = "remote_logout"
    USER_LOGOUT = "user_logout"


@dataclass(frozen=True, slots=True)
class AuthEvent:
    """An auth-state transition. Ephemeral, never persisted."""

    type: AuthEventType
    reason: LogoutReason
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def logged_out(cls, reason: LogoutReason) -> "AuthEvent":
        return cls(type=AuthEventType.LOGGED_OUT, reason=reason)


AuthEventListener = Callable[[AuthEvent], None]


class AuthEventBus:
    """Synchronous publish/subscribe channel for auth events.

    Usage:
        bus = AuthEventBus()
        unsubscribe = bus.subscribe(lambda event: print(event.reason))
        bus.emit(AuthEvent.logged_out(LogoutReason.USER_LOGOUT))
        unsubscribe()
    """

    def __init__(self) -> None:
        self._listeners: list[AuthEventListener] = []
        self._lock = threading.Lock()

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def subscribe(self, listener: AuthEventListener) -> Callable[[], None]:
        """Register a listener.

        Args:
            listener: Called with every emitted event.

        Returns:
            Disposer that removes the listener. Calling it twice is a no-op.
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

    def emit(self, event: AuthEvent) -> None:
        """Invoke every currently registered listener with the event.

        Listeners registered or removed during emission take effect on the
        next emit.
        """
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                get_system_logger().error(
                    {
                        "event": "auth_listener_failed",
                        "message": f"Auth event listener raised: {e}",
                        "auth_event": event.type.value,
                        "reason": event.reason.value,
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                    }
                )
