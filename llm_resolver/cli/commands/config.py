"""Configuration commands for the llmr CLI."""

import os

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from llm_resolver.core.config.schema import ConfigSchema
from llm_resolver.core.config.settings import load_user_env, user_env_file
from llm_resolver.core.config.validation import ConfigError, load_env_var, validate_all

app = typer.Typer(help="Configuration management")


@app.command()
def show() -> None:
    """Show effective settings and where they come from (secrets are hidden)."""
    console = Console()
    load_user_env()

    table = Table(title="LLM Resolver Configuration")
    table.add_column("Variable", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Source", style="dim")

    for _name, spec in sorted(ConfigSchema.all_specs().items()):
        is_set = bool(os.environ.get(spec.name, "").strip())
        try:
            value = load_env_var(spec)
        except ConfigError as e:
            table.add_row(spec.name, f"[red]invalid: {e.message}[/red]", "env")
            continue

        if spec.secret:
            shown = "[green]set[/green]" if value else "-"
        else:
            shown = "-" if value is None else str(value)
        table.add_row(spec.name, shown, "env" if is_set else "default")

    console.print(table)
    console.print(f"User settings file: {user_env_file()}", style="dim")


@app.command()
def validate() -> None:
    """Validate every environment variable; exit non-zero on errors."""
    console = Console()
    load_user_env()

    errors = validate_all()
    if not errors:
        console.print("[green]Configuration is valid[/green]")
        return

    for error in errors:
        console.print(f"[red]Configuration error:[/red] {error.env_var}: {error.message}")
    raise typer.Exit(1) from None


@app.command()
def docs() -> None:
    """Print documentation for every environment variable."""
    Console().print(Markdown(ConfigSchema.generate_markdown_docs()))
