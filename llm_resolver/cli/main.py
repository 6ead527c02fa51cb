"""Main CLI entry point for llm-resolver."""

import typer
from rich.console import Console

from llm_resolver.cli.commands import auth, config, resolve, start
from llm_resolver.core.logging import configure_root_logging

app = typer.Typer(
    name="llmr",
    help="LLM Resolver CLI - pick a language-model backend and get it authenticated",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(auth.app, name="auth", help="Backend authentication management")
app.add_typer(config.app, name="config", help="Configuration management")
app.command(name="start")(start.start)
app.command(name="resolve")(resolve.resolve)


@app.command()
def version() -> None:
    """Show version information."""
    from llm_resolver import __version__

    console = Console()
    console.print(f"[bold cyan]llmr[/bold cyan] version [green]{__version__}[/green]")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """LLM Resolver CLI."""
    if verbose:
        configure_root_logging("DEBUG")


if __name__ == "__main__":
    app()
