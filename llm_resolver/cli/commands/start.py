"""Start command for the llmr CLI."""

import asyncio
import logging

import typer
from rich.console import Console

from llm_resolver.cli.presenters.startup import StartupPresenter
from llm_resolver.core.config.settings import Settings
from llm_resolver.core.config.validation import ConfigError
from llm_resolver.core.exceptions import ResolverError
from llm_resolver.core.logging import configure_root_logging
from llm_resolver.startup import bootstrap


def start(
    no_onboard: bool = typer.Option(
        False,
        "--no-onboard",
        help="Headless mode: fail instead of starting an interactive login",
    ),
    models: bool = typer.Option(True, "--models/--no-models", help="List available models"),
) -> None:
    """Resolve the backend, authenticate and print the provider chain."""
    console = Console()
    presenter = StartupPresenter(console)

    try:
        settings = Settings.load()
    except ConfigError as e:
        presenter.present_error(e)
        raise typer.Exit(1) from None

    if not logging.getLogger().handlers:
        configure_root_logging(settings.log_level)
    interactive = not (no_onboard or settings.no_onboard)

    try:
        chain = asyncio.run(bootstrap(settings, interactive=interactive))
    except KeyboardInterrupt:
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(130) from None
    except (ResolverError, ConfigError) as e:
        presenter.present_error(e)
        raise typer.Exit(1) from None

    presenter.present_chain(chain, show_models=models)
    if chain.degraded:
        console.print("[yellow]Model discovery unavailable; using bundled model data.[/yellow]")
