"""Shared CLI plumbing."""

import sys

import typer
from rich.console import Console

from corethink.config.settings import Settings
from corethink.core.errors import ConfigurationError, CoreThinkError
from corethink.core.logging import setup_logging


console = Console()
err_console = Console(stderr=True)


def get_settings(ctx: typer.Context) -> Settings:
    """Settings loaded by the root callback, loading them if absent."""
    if isinstance(ctx.obj, Settings):
        return ctx.obj
    root = ctx.find_root()
    if isinstance(root.obj, Settings):
        return root.obj
    settings = load_settings(None)
    root.obj = settings
    return settings


def load_settings(config: str | None) -> Settings:
    try:
        return Settings.from_config(config)
    except ConfigurationError as e:
        error(str(e))
        raise typer.Exit(2) from e


def configure_logging(settings: Settings) -> None:
    fmt = settings.logging.format
    json_logs = fmt == "json" or (fmt == "auto" and not sys.stderr.isatty())
    setup_logging(
        json_logs=json_logs,
        log_level_name=settings.logging.level,
        log_file=settings.logging.file,
    )


def error(message: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {message}", highlight=False)


def fail(exc: CoreThinkError) -> typer.Exit:
    """Print a typed error without a traceback and return the exit to raise."""
    details = exc.to_dict()
    error(details["message"])
    for suggestion in details.get("suggestions", []):
        err_console.print(f"  [dim]-[/dim] {suggestion}", highlight=False)
    return typer.Exit(1)
