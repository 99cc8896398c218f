"""Config command group for runners-client CLI.

Commands:
    config init      - Create the configuration file
    config show      - Display current configuration
    config path      - Show config file path
    config validate  - Validate a configuration file
"""

from __future__ import annotations

__all__ = ["config"]

from pathlib import Path

import click
from pydantic import ValidationError

from runners_client.config import (
    AuthConfig,
    BackendConfig,
    ClientConfig,
    LoggingConfig,
    get_config_path,
)
from runners_client.constants import APP_NAME, DEFAULT_BASE_URL, DEFAULT_HTTP_TIMEOUT_SECONDS
from runners_client.exceptions import ConfigurationError

from ..output import echo_json, field, heading, muted, success


@click.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("init")
@click.option("--base-url", default=DEFAULT_BASE_URL, show_default=True, help="Backend origin")
@click.option(
    "--timeout",
    "timeout_seconds",
    type=int,
    default=DEFAULT_HTTP_TIMEOUT_SECONDS,
    show_default=True,
    help="Request timeout in seconds",
)
@click.option(
    "--refresh-strategy",
    type=click.Choice(["strict", "soft"]),
    default="strict",
    show_default=True,
    help="strict: failed refresh logs out; soft: failed refresh returns the 401",
)
@click.option(
    "--refresh-credential",
    type=click.Choice(["cookie", "persisted"]),
    default="cookie",
    show_default=True,
    help="Where the refresh token lives",
)
@click.option(
    "--storage",
    type=click.Choice(["auto", "keychain", "encrypted_file", "memory"]),
    default="auto",
    show_default=True,
    help="Secret storage backend",
)
@click.option("--log-dir", default=None, help="Base log directory")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def config_init(
    base_url: str,
    timeout_seconds: int,
    refresh_strategy: str,
    refresh_credential: str,
    storage: str,
    log_dir: str | None,
    force: bool,
) -> None:
    """Create the configuration file."""
    config_file_path = get_config_path()
    if config_file_path.exists() and not force:
        raise click.ClickException(
            f"Config already exists at {config_file_path}\nUse --force to overwrite."
        )

    try:
        new_config = ClientConfig(
            backend=BackendConfig(base_url=base_url, timeout_seconds=timeout_seconds),
            auth=AuthConfig(
                refresh_strategy=refresh_strategy,
                refresh_credential=refresh_credential,
                storage=storage,
            ),
            logging=LoggingConfig(log_dir=log_dir) if log_dir else LoggingConfig(),
        )
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    new_config.save_to_file(config_file_path)
    click.echo(success(f"Configuration saved to {config_file_path}"))


def _read_config(path: Path, *, apply_env: bool = True) -> ClientConfig:
    try:
        return ClientConfig.load_from_file(path, apply_env=apply_env)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def config_show(as_json: bool) -> None:
    """Display current configuration.

    RUNNERS_BASE_URL, when set, is already applied to backend.base_url.
    """
    config_file_path = get_config_path()
    loaded = _read_config(config_file_path)

    if as_json:
        document = loaded.model_dump(mode="json")
        document["_computed"] = {
            "config_file": str(config_file_path),
            "log_files": {
                "system": str(loaded.logging.system_log_path),
                "auth": str(loaded.logging.auth_log_path),
            },
        }
        echo_json(document)
        return

    sections = {
        "Backend": loaded.backend.model_dump(),
        "Authentication": loaded.auth.model_dump(),
        "Logging": {
            **loaded.logging.model_dump(),
            "system log": loaded.logging.system_log_path,
            "auth log": loaded.logging.auth_log_path,
        },
    }
    for title, values in sections.items():
        click.echo(heading(title))
        for name, value in values.items():
            click.echo(field(name, value))
        click.echo()
    click.echo(field("Config file", config_file_path))


@config.command("path")
def config_path_cmd() -> None:
    """Print where the config file lives (it may not exist yet)."""
    path = get_config_path()
    click.echo(str(path))
    if not path.exists():
        click.echo(muted(f"Not created yet; run '{APP_NAME} config init'."), err=True)


@config.command("validate")
@click.option(
    "--path",
    "-p",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Validate this file instead of the default config",
)
def config_validate(path: Path | None) -> None:
    """Check a config file without applying environment overrides.

    Exits 1 when the file is missing or invalid.
    """
    config_file_path = path or get_config_path()
    _read_config(config_file_path, apply_env=False)
    click.echo(success(f"Config valid: {config_file_path}"))
