"""Authentication commands for runners-client CLI.

Commands:
    auth status        - Show stored session state
    auth set-token     - Store an access token obtained elsewhere
    auth login-google  - Exchange a Google ID token for a session
    auth refresh       - Refresh the access token now
    auth logout        - End the session and clear stored credentials
"""

from __future__ import annotations

__all__ = ["auth"]

from typing import Any

import click

from runners_client.auth.events import AuthEventBus
from runners_client.auth.token_storage import create_secret_storage, get_storage_info
from runners_client.auth.token_store import RefreshCredentialStore, TokenStore
from runners_client.context import ClientContext

from ..helpers import load_config_or_exit, run_with_context
from ..output import caution, echo_json, field, heading, muted, success


@click.group()
def auth() -> None:
    """Authentication commands."""
    pass


@auth.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def status(as_json: bool) -> None:
    """Show authentication status.

    Reads the persisted session only; no network calls are made.
    """
    client_config = load_config_or_exit()
    try:
        storage = create_secret_storage(client_config.auth.storage)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    store = TokenStore(storage, AuthEventBus())
    token = store.load()

    result: dict[str, Any] = {
        "authenticated": token is not None,
        "backend": client_config.backend.base_url,
        "storage": get_storage_info(storage),
        "refresh_strategy": client_config.auth.refresh_strategy,
        "refresh_credential": client_config.auth.refresh_credential,
    }
    if token is not None:
        result["token"] = {
            "fingerprint": token.fingerprint,
            "origin": token.origin.value,
            "issued_at": token.issued_at.isoformat(),
        }
    if client_config.auth.refresh_credential == "persisted":
        result["has_refresh_token"] = RefreshCredentialStore(storage).get() is not None

    if as_json:
        echo_json(result)
        return

    click.echo(heading("Session"))
    click.echo(field("Backend", result["backend"]))
    click.echo(field("Storage", result["storage"]["backend"]))
    click.echo(field("Refresh", f"{result['refresh_strategy']} ({result['refresh_credential']})"))
    if token is None:
        click.echo()
        click.echo(muted("Not logged in."))
        return
    click.echo(field("Token", f"{token.fingerprint} ({token.origin.value})"))
    click.echo(field("Issued", token.issued_at.isoformat()))
    if "has_refresh_token" in result:
        click.echo(field("Refresh token stored", result["has_refresh_token"]))


@auth.command("set-token")
@click.argument("token")
@click.option("--refresh-token", default=None, help="Refresh token to store (persisted credential mode)")
def set_token(token: str, refresh_token: str | None) -> None:
    """Store an access token obtained outside this tool."""
    client_config = load_config_or_exit()

    async def _store(ctx: ClientContext) -> None:
        if refresh_token and ctx.credentials is None:
            raise click.ClickException(
                "--refresh-token requires auth.refresh_credential = \"persisted\""
            )
        ctx.session.login(token, refresh_token)

    run_with_context(client_config, _store)
    click.echo(success("Access token stored."))
    if client_config.auth.storage == "memory":
        click.echo(caution("memory storage does not outlive this command."))


@auth.command("login-google")
@click.argument("id_token")
def login_google(id_token: str) -> None:
    """Log in with a Google ID token."""
    client_config = load_config_or_exit()

    async def _login(ctx: ClientContext) -> Any:
        return await ctx.session.login_with_google(id_token)

    response = run_with_context(client_config, _login)
    click.echo(success(f"Logged in as {response.email}"))
    if response.nickname:
        click.echo(field("Nickname", response.nickname))
    if response.is_new_user:
        click.echo("  New account created.")


@auth.command()
def refresh() -> None:
    """Refresh the access token now.

    With the cookie credential the refresh cookie only lives for one process,
    so this command is mostly useful with auth.refresh_credential = "persisted".
    """
    client_config = load_config_or_exit()

    async def _refresh(ctx: ClientContext) -> Any:
        return await ctx.refresher.refresh()

    token = run_with_context(client_config, _refresh)
    if token is None:
        raise click.ClickException("Refresh failed; session left unchanged (soft strategy).")
    click.echo(success(f"Access token refreshed ({token.fingerprint})."))


@auth.command()
def logout() -> None:
    """End the session and clear stored credentials."""
    client_config = load_config_or_exit()

    async def _logout(ctx: ClientContext) -> bool:
        had_session = ctx.store.get() is not None
        ctx.session.logout()
        return had_session

    had_session = run_with_context(client_config, _logout)

    if had_session:
        click.echo(success("Local credentials cleared."))
    else:
        click.echo(muted("No stored credentials found."))
