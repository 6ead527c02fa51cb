"""Resolve command: show which backend a configuration selects."""

import asyncio
from dataclasses import replace

import typer
from rich.console import Console
from rich.table import Table

from llm_resolver.cli.presenters.startup import StartupPresenter
from llm_resolver.core.backend import LOCAL_PRESETS, parse_backend_selector
from llm_resolver.core.config.settings import Settings
from llm_resolver.core.config.validation import ConfigError
from llm_resolver.core.resolver import BackendResolver, preview


def resolve(
    backend: str = typer.Option(None, "--backend", "-b", help="Hypothetical LLM_BACKEND"),
    base_url: str = typer.Option(None, "--base-url", help="Hypothetical LLM_BASE_URL"),
    local: bool = typer.Option(
        None,
        "--local-up/--local-down",
        help="Assume the local server is up or down instead of probing",
    ),
    presets: list[str] = typer.Option(
        [],
        "--preset-up",
        help=f"Treat a preset as reachable ({', '.join(p.name for p in LOCAL_PRESETS)})",
    ),
) -> None:
    """Show the backend the resolver would pick.

    Without --local-up/--local-down the local endpoints are actually probed.

    Example:
        llmr resolve --local-down
        llmr resolve --backend anthropic
    """
    console = Console()

    try:
        settings = Settings.load()
        resolution_input = settings.resolution_input()
        if backend:
            try:
                resolution_input = replace(
                    resolution_input, backend_override=parse_backend_selector(backend)
                )
            except ValueError as e:
                raise ConfigError("LLM_BACKEND", backend, str(e)) from e
        if base_url:
            resolution_input = replace(resolution_input, base_url_override=base_url)
        if presets:
            unknown = set(presets) - {p.name for p in LOCAL_PRESETS}
            if unknown:
                raise ConfigError("--preset-up", ",".join(sorted(unknown)), "unknown preset")
            resolution_input = replace(resolution_input, extra_candidates=LOCAL_PRESETS)
    except ConfigError as e:
        StartupPresenter(console).present_error(e)
        raise typer.Exit(1) from None

    probe_results = ()
    if local is None:
        resolver = BackendResolver()
        identity = asyncio.run(resolver.resolve(resolution_input))
        probe_results = resolver.last_probe_results
        mode = "probed"
    else:
        identity = preview(resolution_input, local_reachable=local, reachable_presets=presets)
        mode = "preview"

    table = Table(title=f"Backend Resolution ({mode})")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Backend", identity.kind.value)
    if identity.vendor:
        table.add_row("Vendor", identity.vendor)
    table.add_row("Base URL", identity.base_url or "(profile default)")
    for result in probe_results:
        state = "[green]up[/green]" if result.reachable else "[red]down[/red]"
        table.add_row(f"Probe {result.endpoint}", f"{state} in {result.elapsed * 1000:.0f}ms")
    console.print(table)
