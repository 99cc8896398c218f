"""Operational log for runners-client.

Everything that is not part of the auth audit trail goes here: refresh
outcomes, failed requests, secret storage problems, listener errors.

Destinations:
- stderr: WARNING and up by default, INFO with --verbose or log_level DEBUG
- system.jsonl: WARNING and up, attached once the log directory is known

Call sites pass dicts:
    get_system_logger().warning({"event": "token_persist_failed", "message": "..."})
"""

from __future__ import annotations

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "get_system_logger",
    "reset_system_logger",
    "set_console_level",
]

import logging
import sys
from pathlib import Path

from runners_client.constants import APP_NAME
from runners_client.utils.logging.jsonl import JsonlFormatter, prepare_log_file

SYSTEM_LOGGER_NAME = f"{APP_NAME}.system"


class ConsoleFormatter(logging.Formatter):
    """One short line per record: "<LEVEL>: <message or event>"."""

    def format(self, record: logging.LogRecord) -> str:
        if isinstance(record.msg, dict):
            text = record.msg.get("message") or record.msg.get("event") or ""
        else:
            text = record.getMessage()
        return f"{record.levelname}: {text}"


_logger: logging.Logger | None = None
_console: logging.StreamHandler | None = None
_file: logging.FileHandler | None = None


def get_system_logger() -> logging.Logger:
    """Return the process-wide system logger, creating it with a stderr handler."""
    global _logger, _console

    if _logger is None:
        logger = logging.getLogger(SYSTEM_LOGGER_NAME)
        # Handlers filter; the logger itself passes everything through
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        _console = logging.StreamHandler(sys.stderr)
        _console.setLevel(logging.WARNING)
        _console.setFormatter(ConsoleFormatter())
        logger.addHandler(_console)
        _logger = logger
    return _logger


def set_console_level(level: int) -> None:
    """Change what reaches stderr (e.g. logging.INFO for verbose runs)."""
    get_system_logger()
    assert _console is not None
    _console.setLevel(level)


def configure_system_logger_file(log_path: Path) -> None:
    """Also write WARNING and up to log_path as JSON lines.

    Only the first call attaches a file. If the directory cannot be created
    the logger keeps writing to stderr alone.
    """
    global _file

    if _file is not None:
        return
    try:
        prepare_log_file(log_path)
    except OSError:
        return

    _file = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    _file.setLevel(logging.WARNING)
    _file.setFormatter(JsonlFormatter())
    get_system_logger().addHandler(_file)


def reset_system_logger() -> None:
    """Detach and close every handler so the next call starts fresh (tests)."""
    global _logger, _console, _file

    if _logger is not None:
        for handler in list(_logger.handlers):
            _logger.removeHandler(handler)
            handler.close()
    _logger = None
    _console = None
    _file = None
