"""Filesystem helpers for config, encrypted secrets and log files.

Everything runners-client writes to disk is private to the current user:
directories are 0o700 and files 0o600 on POSIX. Windows relies on the
profile directory ACLs instead.
"""

from __future__ import annotations

__all__ = [
    "get_app_dir",
    "make_private_dir",
    "read_json_model",
    "restrict_to_owner",
    "write_private_file",
]

import json
import sys
from pathlib import Path
from typing import TypeVar

import click
from pydantic import BaseModel, ValidationError

from runners_client.constants import APP_NAME

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_app_dir() -> Path:
    """Per-user config directory, e.g. ~/.config/runners-client on Linux."""
    return Path(click.get_app_dir(APP_NAME))


def restrict_to_owner(path: Path) -> None:
    """chmod path to 0o700 (directory) or 0o600 (file); best effort."""
    if sys.platform == "win32":
        return
    mode = 0o700 if path.is_dir() else 0o600
    try:
        path.chmod(mode)
    except OSError:
        # Shared mounts and some containers refuse chmod
        pass


def make_private_dir(directory: Path) -> Path:
    """Create directory (and parents) and restrict it to the owner.

    Raises:
        OSError: The directory could not be created.
    """
    directory.mkdir(parents=True, exist_ok=True)
    restrict_to_owner(directory)
    return directory


def write_private_file(path: Path, content: str | bytes) -> None:
    """Write content to path inside a private directory.

    Raises:
        OSError: The directory or file could not be written.
    """
    make_private_dir(path.parent)
    if isinstance(content, str):
        path.write_text(content, encoding="utf-8")
    else:
        path.write_bytes(content)
    restrict_to_owner(path)


def _describe_validation_error(error: ValidationError) -> str:
    lines = []
    for item in error.errors():
        where = ".".join(str(part) for part in item["loc"]) or "<root>"
        lines.append(f"  - {where}: {item['msg']}")
    return "\n".join(lines)


def read_json_model(path: Path, model: type[ModelT], *, what: str) -> ModelT:
    """Parse path as JSON and validate it into model.

    Every failure is a ValueError whose text names the file and points at
    `config init`, which is the way to recreate any file this reads.

    Args:
        path: JSON file to read.
        model: Pydantic model the document must satisfy.
        what: Human name of the file ("configuration").

    Raises:
        ValueError: Missing file, unreadable file, bad JSON, or a document
            that does not validate.
    """
    recover = f"Run '{APP_NAME} config init' to recreate it."

    if not path.exists():
        raise ValueError(f"No {what} file at {path}.\n{recover}")
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ValueError(f"Cannot read {what} file {path}: {e}") from e
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {what} file {path} ({e}).\n{recover}") from e

    try:
        return model.model_validate(document)
    except ValidationError as e:
        raise ValueError(
            f"Invalid {what} file {path}:\n{_describe_validation_error(e)}\n\n{recover}"
        ) from e
