"""Custom exceptions for runners-client.

Exceptions are organized by how they propagate:

Caller-level errors (returned to the screen/command that made the call):
    - NetworkError: transport failure, this is httpx.TransportError itself
    - HttpError: non-2xx response with a parsed server message
    - RequestCancelledError: caller's cancel signal was observed

Authentication-terminal errors (also escalated through the auth event bus):
    - RefreshFailure: refresh endpoint failed or returned no token
    - SessionExpiredError: the session cannot be recovered, user must log in

Infrastructure errors:
    - StorageError: secret storage backend failure
    - ConfigurationError: config file missing or invalid

Usage:
    from runners_client.exceptions import HttpError, RefreshFailure
"""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
    "HttpError",
    "NetworkError",
    "RefreshFailure",
    "RequestCancelledError",
    "RunnersClientError",
    "SessionExpiredError",
    "StorageError",
]

import httpx

# Transport-level failures (connect errors, timeouts, protocol errors) are
# propagated unchanged, so the taxonomy name points at httpx's own class.
NetworkError = httpx.TransportError


class RunnersClientError(Exception):
    """Base class for all runners-client errors."""


class HttpError(RunnersClientError):
    """Backend returned a non-2xx response.

    Attributes:
        status_code: HTTP status of the response.
        message: Server-provided message (JSON `message` field, raw body,
            or "HTTP <status>").
        error_code: Backend error code (`errorCode` field) when present.
    """

    def __init__(self, status_code: int, message: str, error_code: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error_code = error_code

    def __repr__(self) -> str:
        parts = [f"HttpError({self.status_code}, {self.message!r}"]
        if self.error_code is not None:
            parts.append(f", error_code={self.error_code!r}")
        parts.append(")")
        return "".join(parts)


class RefreshFailure(RunnersClientError):
    """Token refresh failed or returned no access token.

    In the strict refresh strategy this escalates to a forced logout.

    Attributes:
        message: Parsed server message or local reason.
        status_code: HTTP status of the refresh response, None if the
            refresh never reached the server.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SessionExpiredError(RefreshFailure):
    """The session is over and the user must log in again.

    Raised by a strict refresh when the refresh endpoint rejects the
    credential with 401 or 403.
    """


class RequestCancelledError(RunnersClientError):
    """The caller's cancel signal was set while the request was in flight."""


class StorageError(RunnersClientError):
    """Secret storage backend failed (keychain or encrypted file)."""


class ConfigurationError(RunnersClientError):
    """Configuration is invalid or incomplete.

    Raised when:
    - Config file does not exist (not initialized)
    - Config file contains invalid JSON
    - Config file fails Pydantic validation
    """
