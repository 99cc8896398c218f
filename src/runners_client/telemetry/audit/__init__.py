"""Auth audit logging.

- AuthLogger: typed methods for auth events, attachable to the event bus
  and token store
"""

from runners_client.telemetry.audit.auth_logger import (
    AuthLogger,
    create_auth_logger,
)

__all__ = [
    "AuthLogger",
    "create_auth_logger",
]
