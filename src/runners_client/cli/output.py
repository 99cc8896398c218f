"""Terminal output for CLI commands.

Human output is colored through click.style (click drops the colors when
stdout is not a terminal). Machine output goes through echo_json.
"""

from __future__ import annotations

__all__ = [
    "caution",
    "echo_json",
    "field",
    "heading",
    "muted",
    "success",
]

import json
from typing import Any

import click

_ACCENT = {"fg": "cyan", "bold": True}


def heading(title: str) -> str:
    return click.style(f"--- {title} ---", **_ACCENT)


def field(name: str, value: object) -> str:
    """Indented "name: value" line with the name highlighted."""
    return f"  {click.style(name + ':', **_ACCENT)} {value}"


def success(text: str) -> str:
    return click.style(f"✓ {text}", fg="green")


def caution(text: str) -> str:
    return click.style(f"Warning: {text}", fg="yellow", bold=True)


def muted(text: str) -> str:
    return click.style(text, dim=True)


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))
