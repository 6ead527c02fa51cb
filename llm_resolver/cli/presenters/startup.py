"""Presenters for startup results and failures in the CLI."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from llm_resolver.core.auth.credentials import ApiKey, Credential, NoCredential, SessionToken
from llm_resolver.core.config.validation import ConfigError
from llm_resolver.core.exceptions import ResolverError, StartupError
from llm_resolver.core.provider.chain import ProviderChain
from llm_resolver.core.provider.static_catalog import ModelInfo


def _price(model: ModelInfo) -> str:
    if model.input_cost is None or model.output_cost is None:
        return "unknown"
    if model.is_free:
        return "free"
    return f"${model.input_cost:g} / ${model.output_cost:g}"


def describe_credential(credential: Credential) -> str:
    """One-line, secret-free description of a credential."""
    if isinstance(credential, ApiKey):
        return f"API key {credential.masked}"
    if isinstance(credential, SessionToken):
        expiry = credential.expires_at.isoformat() if credential.expires_at else "unknown"
        return f"session token {credential.masked} (expires {expiry})"
    if isinstance(credential, NoCredential):
        return "none"
    return type(credential).__name__


class StartupPresenter:
    """Render provider chains and startup errors.

    Presentation only; no business logic.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def present_chain(self, chain: ProviderChain, *, show_models: bool = True) -> None:
        table = Table(title="Provider Chain")
        table.add_column("#", style="dim")
        table.add_column("Backend", style="cyan")
        table.add_column("Base URL", style="green")
        table.add_column("Models")
        table.add_column("Status")

        for index, entry in enumerate(chain, start=1):
            handle = entry.handle
            role = "primary" if index == 1 else "fallback"
            status = f"[yellow]{entry.note}[/yellow]" if entry.degraded else "[green]live[/green]"
            table.add_row(
                f"{index} ({role})",
                f"{handle.display_name} [dim]{handle.identity}[/dim]",
                handle.base_url,
                str(len(handle.models)),
                status,
            )
        self.console.print(table)

        if not show_models:
            return

        for entry in chain:
            handle = entry.handle
            if not handle.models:
                continue
            models = Table(title=f"Models: {handle.identity}", show_lines=False)
            models.add_column("Model", style="cyan")
            models.add_column("Price in/out per 1M tokens")
            models.add_column("Context", justify="right")
            for model in handle.models:
                context = f"{model.context_window:,}" if model.context_window else "-"
                models.add_row(model.id, _price(model), context)
            self.console.print(models)

    def present_error(self, error: Exception) -> None:
        if isinstance(error, StartupError):
            body = f"[red]{error}[/red]\n\n{error.remediation}"
            title = f"Authentication Failed: {error.reason.value}"
        elif isinstance(error, ConfigError):
            body = (
                f"[red]{error.env_var}: {error.message}[/red]\n\n"
                "Check your environment or .env file."
            )
            title = "Configuration Error"
        elif isinstance(error, ResolverError):
            body = f"[red]{error}[/red]"
            title = "Startup Error"
        else:
            body = f"[red]An unexpected error occurred.[/red]\n\nError: {error}"
            title = "Error"
        self.console.print(Panel(body, title=title, border_style="red"))


__all__ = ["StartupPresenter", "describe_credential"]
