"""JSON Lines log files.

Every record becomes one JSON object per line, led by a UTC timestamp and
the level name. Call sites log dicts ({"event": ..., "message": ...}); the
dict keys become top-level fields. Plain string messages land in "message".
"""

from __future__ import annotations

__all__ = [
    "JsonlFormatter",
    "open_jsonl_logger",
    "prepare_log_file",
]

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from runners_client.utils.files import make_private_dir, restrict_to_owner


def _utc_timestamp(created: float) -> str:
    # 2026-03-04T10:48:37.123Z
    moment = datetime.fromtimestamp(created, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class JsonlFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "time": _utc_timestamp(record.created),
            "level": record.levelname,
        }
        if isinstance(record.msg, dict):
            entry.update(record.msg)
        else:
            entry["message"] = record.getMessage()
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def prepare_log_file(log_file: Path) -> None:
    """Create the log file's directory, owner-only where the OS allows it.

    Raises:
        OSError: The directory could not be created.
    """
    try:
        make_private_dir(log_file.parent)
    except OSError as e:
        raise OSError(f"Cannot create log directory {log_file.parent}: {e}") from e


def open_jsonl_logger(name: str, log_file: Path, level: int = logging.INFO) -> logging.Logger:
    """Return logger `name` writing JSON lines to log_file.

    Reopening an existing logger replaces its file handler, so repeated
    calls (one per client context) never duplicate lines.

    Raises:
        OSError: The log directory or file could not be created.
    """
    prepare_log_file(log_file)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    while logger.handlers:
        stale = logger.handlers.pop()
        stale.close()

    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(JsonlFormatter())
    logger.addHandler(handler)
    restrict_to_owner(log_file)
    return logger
