"""Credential management commands."""

import asyncio
import os
from pathlib import Path
from typing import Annotated

import typer
from pydantic import SecretStr
from rich import box
from rich.table import Table

from corethink.auth.models import ApiCredential
from corethink.auth.storage import JsonCredentialStore
from corethink.core.errors import CredentialsError
from corethink.providers.catalog import CORETHINK_ENV_KEY, CORETHINK_PROVIDER_ID

from ..helpers import console, error, fail, get_settings


app = typer.Typer(name="auth", help="Manage credentials", no_args_is_help=True)

API_KEY_PREFIX = "sk_"


def _store(ctx: typer.Context) -> JsonCredentialStore:
    return JsonCredentialStore(get_settings(ctx).auth_file)


def _display_path(path: str) -> str:
    home = str(Path.home())
    return "~" + path[len(home) :] if path.startswith(home) else path


@app.command(name="list")
def list_command(ctx: typer.Context) -> None:
    """List stored credentials."""
    store = _store(ctx)
    try:
        credentials = asyncio.run(store.all())
    except CredentialsError as e:
        raise fail(e) from e

    table = Table(
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        title=f"Credentials {_display_path(store.get_location())}",
        title_style="bold white",
    )
    table.add_column("Provider", style="cyan")
    table.add_column("Type", style="white")
    for provider_id, credential in sorted(credentials.items()):
        table.add_row(provider_id, credential.type)
    console.print(table)
    console.print(f"{len(credentials)} credentials")

    if os.environ.get(CORETHINK_ENV_KEY):
        console.print(f"\nEnvironment: [cyan]CoreThink[/cyan] [dim]{CORETHINK_ENV_KEY}[/dim]")


def _validate_key(value: str) -> str:
    if not value:
        raise typer.BadParameter("Required")
    if not value.startswith(API_KEY_PREFIX):
        raise typer.BadParameter(f"CoreThink API keys should start with '{API_KEY_PREFIX}'")
    return value


@app.command(name="login")
def login_command(
    ctx: typer.Context,
    key: Annotated[
        str | None,
        typer.Option("--key", help="API key; prompted for when omitted"),
    ] = None,
) -> None:
    """Store a CoreThink API key."""
    if key is None:
        console.print("Get your API key from the CoreThink dashboard")
        key = typer.prompt("Enter your CoreThink API key", hide_input=True)
    try:
        key = _validate_key(key.strip())
    except typer.BadParameter as e:
        error(str(e))
        raise typer.Exit(1) from e

    store = _store(ctx)
    try:
        asyncio.run(store.set(CORETHINK_PROVIDER_ID, ApiCredential(key=SecretStr(key))))
    except CredentialsError as e:
        raise fail(e) from e
    console.print("[green]✓[/green] CoreThink API key saved")


@app.command(name="logout")
def logout_command(
    ctx: typer.Context,
    provider: Annotated[
        str,
        typer.Argument(help="Provider whose credential is removed"),
    ] = CORETHINK_PROVIDER_ID,
) -> None:
    """Remove a stored credential."""
    store = _store(ctx)
    try:
        removed = asyncio.run(store.remove(provider))
    except CredentialsError as e:
        raise fail(e) from e
    if not removed:
        error(f"No credentials found for {provider}")
        raise typer.Exit(1)
    console.print("Logout successful")
