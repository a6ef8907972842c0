"""Command line entry point."""

import asyncio
from pathlib import Path

import typer

from corethink._version import __version__
from corethink.core.errors import CoreThinkError
from corethink.providers.catalog import CORETHINK_ENV_KEY
from corethink.providers.state import ProviderState

from .commands.auth import app as auth_app
from .helpers import configure_logging, console, error, fail, get_settings, load_settings


app = typer.Typer(
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
    help="CoreThink transport tools.",
)
app.add_typer(auth_app, name="auth")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"corethink {__version__}")
        raise typer.Exit()


@app.callback()
def app_main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a TOML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Override the configured log level",
    ),
) -> None:
    """Load settings and configure logging for every subcommand."""
    settings = load_settings(str(config) if config else None)
    if log_level:
        settings.logging.level = log_level.upper()
    configure_logging(settings)
    ctx.obj = settings


@app.command(name="models")
def models_command(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Print full model records (costs, limits, capabilities) as JSON",
    ),
) -> None:
    """List available models as provider/model."""
    settings = get_settings(ctx)

    async def _list() -> list[tuple[str, str]]:
        state = ProviderState(settings)
        try:
            providers = await state.list_providers()
            lines: list[tuple[str, str]] = []
            for provider_id, provider in providers.items():
                for model_id in sorted(provider.models):
                    model = provider.models[model_id]
                    lines.append((f"{provider_id}/{model_id}", model.model_dump_json(indent=2)))
            return lines
        finally:
            await state.dispose()

    try:
        lines = asyncio.run(_list())
    except CoreThinkError as e:
        raise fail(e) from e

    if not lines:
        error(f"No providers available. Please set {CORETHINK_ENV_KEY} environment variable.")
        raise typer.Exit(1)

    for qualified_id, record in lines:
        typer.echo(qualified_id)
        if verbose:
            typer.echo(record)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
