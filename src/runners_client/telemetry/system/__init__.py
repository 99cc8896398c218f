"""System operational logging.

Provides the system logger for operational events (token refresh, request
failures, storage problems).
"""

from runners_client.telemetry.system.system_logger import (
    ConsoleFormatter,
    configure_system_logger_file,
    get_system_logger,
    reset_system_logger,
    set_console_level,
)

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "get_system_logger",
    "reset_system_logger",
    "set_console_level",
]
