"""Authentication audit logger.

Logs session state transitions to audit/auth.jsonl:
- Access token stored (login or refresh)
- Access token cleared
- Logged out (with reason: session_expired, remote_logout, user_logout)

Writes are best-effort: a failing audit write is reported on the system
logger and never interrupts the request flow.
"""

from __future__ import annotations

__all__ = [
    "AuthLogger",
    "create_auth_logger",
]

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from runners_client.constants import APP_NAME
from runners_client.telemetry.models.audit import AuthAuditRecord
from runners_client.telemetry.system.system_logger import get_system_logger
from runners_client.utils.logging.jsonl import open_jsonl_logger

if TYPE_CHECKING:
    from runners_client.auth.events import AuthEvent, AuthEventBus
    from runners_client.auth.token_store import SessionToken, TokenStore


class AuthLogger:
    """Turns token store changes and logout events into audit records.

    Usage:
        auth_logger = create_auth_logger(config.logging.auth_log_path)
        detach = auth_logger.attach(bus, store)
        ...
        detach()
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _log_record(self, record: AuthAuditRecord) -> bool:
        try:
            self._logger.info(record.model_dump(exclude_none=True, mode="json"))
        except Exception as e:
            get_system_logger().error(
                {
                    "event": "auth_audit_write_failed",
                    "message": f"Failed to write auth audit record: {e}",
                    "audit_event": record.event_type,
                    "error_type": type(e).__name__,
                }
            )
            return False
        return True

    def log_token_stored(self, token: "SessionToken") -> bool:
        return self._log_record(
            AuthAuditRecord(
                event_type="token_stored",
                token_origin=token.origin.value,
                token_fingerprint=token.fingerprint,
                message="Access token stored",
            )
        )

    def log_token_cleared(self) -> bool:
        return self._log_record(
            AuthAuditRecord(event_type="token_cleared", message="Access token cleared")
        )

    def log_logged_out(self, event: "AuthEvent") -> bool:
        """Log a logout event from the auth event bus."""
        # A user logout is a normal outcome; forced logouts are auth failures
        status = "Success" if event.reason.value == "user_logout" else "Failure"
        return self._log_record(
            AuthAuditRecord(
                event_type="logged_out",
                status=status,
                reason=event.reason.value,
                message=f"Logged out ({event.reason.value})",
            )
        )

    def on_token_change(self, token: "SessionToken | None") -> None:
        if token is None:
            self.log_token_cleared()
        else:
            self.log_token_stored(token)

    def attach(self, bus: "AuthEventBus", store: "TokenStore") -> Callable[[], None]:
        """Subscribe to the event bus and the token store.

        Returns:
            Disposer that removes both subscriptions.
        """
        unsubscribe_bus = bus.subscribe(self.log_logged_out)
        unsubscribe_store = store.subscribe(self.on_token_change)

        def detach() -> None:
            unsubscribe_bus()
            unsubscribe_store()

        return detach


def create_auth_logger(log_path: Path) -> AuthLogger:
    """Create an auth logger writing JSONL to log_path.

    Args:
        log_path: Path to auth.jsonl (see LoggingConfig.auth_log_path).

    Raises:
        OSError: The audit directory or file could not be created.
    """
    return AuthLogger(open_jsonl_logger(f"{APP_NAME}.audit.auth", log_path))
