"""Raw API access for runners-client CLI.

Commands:
    api get PATH  - Authenticated GET, prints the JSON response
"""

from __future__ import annotations

__all__ = ["api"]

from typing import Any

import click

from runners_client.context import ClientContext

from ..helpers import load_config_or_exit, run_with_context
from ..output import echo_json


def _parse_params(values: tuple[str, ...]) -> dict[str, str]:
    params: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--param")
        params[key] = value
    return params


@click.group()
def api() -> None:
    """Call backend endpoints directly."""
    pass


@api.command("get")
@click.argument("path")
@click.option("--param", "-p", "params", multiple=True, help="Query parameter KEY=VALUE (repeatable)")
def api_get(path: str, params: tuple[str, ...]) -> None:
    """Authenticated GET of PATH (e.g. /api/users/me)."""
    if not path.startswith("/"):
        raise click.BadParameter("path must start with '/'", param_hint="PATH")
    query = _parse_params(params)
    client_config = load_config_or_exit()

    async def _get(ctx: ClientContext) -> Any:
        return await ctx.client.request_json("GET", path, params=query or None)

    data = run_with_context(client_config, _get)
    echo_json(data)
