"""runners-client command line.

    runners-client api get PATH          authenticated GET, JSON out
    runners-client auth status|set-token|login-google|refresh|logout
    runners-client config init|show|path|validate
"""

from __future__ import annotations

__all__ = ["cli"]

import logging

import click

from runners_client import __version__
from runners_client.constants import APP_NAME
from runners_client.telemetry.system.system_logger import set_console_level

from .commands.api import api
from .commands.auth import auth
from .commands.config import config

_EPILOG = f"""\b
Quick start:
  {APP_NAME} config init --base-url https://api.example.com
  {APP_NAME} auth login-google <google-id-token>
  {APP_NAME} api get /api/users/me

\b
Environment:
  RUNNERS_BASE_URL   Overrides backend.base_url from the config file
"""


@click.group(
    invoke_without_command=True,
    epilog=_EPILOG,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(
    __version__, "--version", "-v", prog_name=APP_NAME, message="%(prog)s %(version)s"
)
@click.option("--verbose", is_flag=True, help="Show informational log events on stderr")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Authenticated client for the Runners backend."""
    if verbose:
        set_console_level(logging.INFO)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


for _command in (api, auth, config):
    cli.add_command(_command)


def main() -> None:
    cli()
