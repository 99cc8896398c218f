"""Creation of the underlying httpx client for the backend."""

from __future__ import annotations

__all__ = [
    "USER_AGENT",
    "create_http_client",
]

import httpx

from runners_client import __version__
from runners_client.config import BackendConfig
from runners_client.constants import APP_NAME

# User-Agent header for backend requests (informational, not security)
USER_AGENT = f"{APP_NAME}/{__version__}"


def create_http_client(
    config: BackendConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared AsyncClient for backend calls.

    The same client (and cookie jar) is used by the fetch client and the
    refresh operation, so the refresh cookie set at login travels with
    refresh requests.

    Args:
        config: Backend base URL and timeout.
        transport: Optional transport override (httpx.MockTransport in tests).

    Returns:
        Configured httpx.AsyncClient. The caller owns it and must close it.
    """
    return httpx.AsyncClient(
        base_url=config.base_url.rstrip("/"),
        timeout=httpx.Timeout(float(config.timeout_seconds)),
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        follow_redirects=False,
        transport=transport,
    )
