"""Application configuration for runners-client.

config.json lives in click's per-user app dir and is created by
`runners-client config init`. It has three sections: backend, auth and
logging. RUNNERS_BASE_URL, when set, replaces backend.base_url at load time.

    config = ClientConfig.load_from_file(get_config_path())
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_LOG_DIR",
    "AuthConfig",
    "BackendConfig",
    "ClientConfig",
    "LoggingConfig",
    "get_config_path",
]

import json
import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from runners_client.constants import (
    APP_NAME,
    AUTH_PATH_PREFIX,
    BASE_URL_ENV_VAR,
    DEFAULT_BASE_URL,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_SYNC_INTERVAL_SECONDS,
    MAX_HTTP_TIMEOUT_SECONDS,
    MIN_HTTP_TIMEOUT_SECONDS,
    REFRESH_PATH,
)
from runners_client.exceptions import ConfigurationError
from runners_client.utils.files import get_app_dir, read_json_model, write_private_file

CONFIG_FILENAME = "config.json"


# =============================================================================
# Platform-specific defaults
# =============================================================================


# Where each OS keeps per-user logs; other platforms follow XDG state
_LOG_ROOTS = {
    "darwin": "~/Library/Logs",
    "win32": "~/AppData/Local",
}


def default_log_dir() -> str:
    return _LOG_ROOTS.get(sys.platform) or os.environ.get("XDG_STATE_HOME", "~/.local/state")


DEFAULT_LOG_DIR = default_log_dir()


def get_config_path() -> Path:
    """Get path to the client config file (<app_dir>/config.json)."""
    return get_app_dir() / CONFIG_FILENAME


# =============================================================================
# Backend Configuration
# =============================================================================


class BackendConfig(BaseModel):
    """Backend API connection settings.

    Attributes:
        base_url: Backend origin (e.g., "https://api.runners.example").
            The bearer token is only attached to requests on this origin.
        timeout_seconds: Bound applied to every request and the refresh call.
    """

    base_url: str = Field(default=DEFAULT_BASE_URL, min_length=1, pattern=r"^https?://")
    timeout_seconds: int = Field(
        default=DEFAULT_HTTP_TIMEOUT_SECONDS,
        ge=MIN_HTTP_TIMEOUT_SECONDS,
        le=MAX_HTTP_TIMEOUT_SECONDS,
    )


# =============================================================================
# Authentication Configuration
# =============================================================================


class AuthConfig(BaseModel):
    """Token refresh and persistence settings.

    Attributes:
        refresh_path: Path of the refresh endpoint.
        auth_path_prefix: Requests under this prefix are sent without a bearer
            header and a 401 from them is never refreshed.
        refresh_strategy: "strict" raises and forces logout when refresh fails;
            "soft" returns no token and leaves logout to the caller.
        refresh_credential: "cookie" relies on the httpOnly refresh cookie in
            the client's cookie jar; "persisted" sends a stored refresh token
            in the request body.
        storage: Secret storage backend ("auto" prefers the OS keychain and
            falls back to an encrypted file).
        sync_interval_seconds: Poll interval for external token changes.
    """

    refresh_path: str = Field(default=REFRESH_PATH, pattern=r"^/")
    auth_path_prefix: str = Field(default=AUTH_PATH_PREFIX, pattern=r"^/")
    refresh_strategy: Literal["strict", "soft"] = "strict"
    refresh_credential: Literal["cookie", "persisted"] = "cookie"
    storage: Literal["auto", "keychain", "encrypted_file", "memory"] = "auto"
    sync_interval_seconds: float = Field(default=DEFAULT_SYNC_INTERVAL_SECONDS, gt=0)


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration settings.

    Logs are stored in <log_dir>/runners-client/ with this structure:
        <log_dir>/
        └── runners-client/
            ├── system/
            │   └── system.jsonl        # WARNING and above
            └── audit/
                └── auth.jsonl          # logout events, token changes

    Attributes:
        log_dir: Base directory for logs (platform-specific default).
        log_level: DEBUG also echoes INFO events to stderr.
    """

    log_dir: str = Field(default=DEFAULT_LOG_DIR, min_length=1)
    log_level: Literal["DEBUG", "INFO"] = "INFO"

    @property
    def base_path(self) -> Path:
        return Path(self.log_dir).expanduser() / APP_NAME

    @property
    def system_log_path(self) -> Path:
        return self.base_path / "system" / "system.jsonl"

    @property
    def auth_log_path(self) -> Path:
        return self.base_path / "audit" / "auth.jsonl"


# =============================================================================
# Client Configuration
# =============================================================================


class ClientConfig(BaseModel):
    """Main configuration for runners-client.

    Attributes:
        backend: Backend API connection settings.
        auth: Token refresh and persistence settings.
        logging: Log directory and level.
    """

    backend: BackendConfig = Field(default_factory=BackendConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"extra": "ignore"}  # Ignore unknown fields for forward compat

    def with_env_overrides(self) -> "ClientConfig":
        """Return a copy with environment overrides applied.

        RUNNERS_BASE_URL replaces backend.base_url when set and non-empty.
        """
        base_url = os.environ.get(BASE_URL_ENV_VAR, "").strip()
        if not base_url:
            return self
        data = self.model_dump()
        data["backend"]["base_url"] = base_url
        try:
            return ClientConfig.model_validate(data)
        except ValueError as e:
            raise ConfigurationError(f"Invalid {BASE_URL_ENV_VAR} value {base_url!r}: {e}") from e

    def save_to_file(self, config_path: Path) -> None:
        """Write the config as indented JSON, readable by the owner only."""
        write_private_file(config_path, json.dumps(self.model_dump(), indent=2) + "\n")

    @classmethod
    def load_from_file(cls, config_path: Path, *, apply_env: bool = True) -> "ClientConfig":
        """Read config_path, then layer environment overrides on top.

        Raises:
            ConfigurationError: The file is missing, unreadable or invalid.
        """
        try:
            config = read_json_model(config_path, cls, what="configuration")
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        return config.with_env_overrides() if apply_env else config
