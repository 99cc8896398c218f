"""Application-wide constants for runners-client.

Constants that define client behavior.
For user-configurable settings per deployment, see config.py.
"""

import os

__all__ = [
    # Application identity
    "APP_NAME",
    # Protected directories
    "PROTECTED_CONFIG_DIR",
    # Backend HTTP
    "DEFAULT_BASE_URL",
    "BASE_URL_ENV_VAR",
    "DEFAULT_HTTP_TIMEOUT_SECONDS",
    "MIN_HTTP_TIMEOUT_SECONDS",
    "MAX_HTTP_TIMEOUT_SECONDS",
    # Auth endpoints
    "REFRESH_PATH",
    "AUTH_PATH_PREFIX",
    "GOOGLE_LOGIN_PATH",
    # Token persistence
    "ACCESS_TOKEN_KEY",
    "REFRESH_TOKEN_KEY",
    "DEFAULT_SYNC_INTERVAL_SECONDS",
    # Consumer defaults
    "DEFAULT_PAGE_SIZE",
]

from platformdirs import user_config_dir

# ============================================================================
# Application Identity
# ============================================================================

# Application name used for directory names, keyring service names, etc.
APP_NAME: str = "runners-client"

# ============================================================================
# Protected Configuration Directory
# ============================================================================

# OS-specific directory for encrypted secret files.
# - macOS: ~/Library/Application Support/runners-client/
# - Linux: ~/.config/runners-client/
# - Windows: %APPDATA%\runners-client\
#
# Note: Resolved with os.path.realpath() to prevent symlink bypass.
PROTECTED_CONFIG_DIR: str = os.path.realpath(user_config_dir(APP_NAME))

# ============================================================================
# Backend HTTP
# ============================================================================

DEFAULT_BASE_URL: str = "http://localhost:8080"

# Overrides backend.base_url from config when set
BASE_URL_ENV_VAR: str = "RUNNERS_BASE_URL"

# Bounded timeout applied to every request and to the refresh call (seconds).
# Matches the mobile client's 30s connect/read/write/call timeouts.
DEFAULT_HTTP_TIMEOUT_SECONDS: int = 30

# Timeout validation range (seconds)
MIN_HTTP_TIMEOUT_SECONDS: int = 1
MAX_HTTP_TIMEOUT_SECONDS: int = 300

# ============================================================================
# Auth Endpoints
# ============================================================================

REFRESH_PATH: str = "/api/auth/refresh"

# Requests under this prefix never get a bearer header and are never refreshed
AUTH_PATH_PREFIX: str = "/api/auth/"

GOOGLE_LOGIN_PATH: str = "/api/auth/google"

# ============================================================================
# Token Persistence
# ============================================================================

# Secret storage keys
ACCESS_TOKEN_KEY: str = "access_token"
REFRESH_TOKEN_KEY: str = "refresh_token"

# How often the sync service re-reads persisted tokens (seconds)
DEFAULT_SYNC_INTERVAL_SECONDS: float = 5.0

# ============================================================================
# Consumer Defaults
# ============================================================================

# Cursor pagination page size used by list endpoints
DEFAULT_PAGE_SIZE: int = 20
