"""Shared CLI helpers: config loading, async execution, error mapping."""

from __future__ import annotations

__all__ = [
    "load_config_or_exit",
    "run_with_context",
]

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import click
import httpx

from runners_client.config import ClientConfig, get_config_path
from runners_client.context import ClientContext, open_client_context
from runners_client.exceptions import (
    ConfigurationError,
    HttpError,
    RefreshFailure,
    RequestCancelledError,
    StorageError,
)

T = TypeVar("T")


def load_config_or_exit(config_path: Path | None = None) -> ClientConfig:
    """Load the client configuration, exiting with a hint on failure.

    Raises:
        click.ClickException: If config not found or invalid.
    """
    path = config_path or get_config_path()
    try:
        return ClientConfig.load_from_file(path)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e


def run_with_context(
    config: ClientConfig,
    action: Callable[[ClientContext], Awaitable[T]],
) -> T:
    """Run an async action inside a fresh ClientContext.

    Client errors are converted to click exceptions with readable messages.
    """

    async def _run() -> T:
        async with open_client_context(config, enable_audit_log=True) as ctx:
            return await action(ctx)

    try:
        return asyncio.run(_run())
    except HttpError as e:
        detail = f" [{e.error_code}]" if e.error_code else ""
        raise click.ClickException(f"HTTP {e.status_code}{detail}: {e.message}") from e
    except RefreshFailure as e:
        raise click.ClickException(
            f"Session refresh failed: {e.message}\n"
            "Run 'runners-client auth login-google' or 'auth set-token' to log in again."
        ) from e
    except httpx.TimeoutException as e:
        raise click.ClickException(f"Backend timed out ({config.backend.base_url}): {e}") from e
    except httpx.TransportError as e:
        raise click.ClickException(
            f"Cannot reach backend at {config.backend.base_url}: {e}"
        ) from e
    except (StorageError, RequestCancelledError) as e:
        raise click.ClickException(str(e)) from e
