"""Authentication commands for the llmr CLI."""

import asyncio
from dataclasses import replace

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from llm_resolver.cli.presenters.startup import StartupPresenter, describe_credential
from llm_resolver.core.auth.constants import RemoteService
from llm_resolver.core.auth.credentials import NoCredential, SessionToken
from llm_resolver.core.auth.exceptions import CredentialStoreCorrupt, StorageError
from llm_resolver.core.auth.storage import FileSystemCredentialStore
from llm_resolver.core.backend import BackendIdentity, parse_backend_selector
from llm_resolver.core.config.settings import Settings
from llm_resolver.core.config.validation import ConfigError
from llm_resolver.core.exceptions import StartupError
from llm_resolver.core.provider.catalog import api_key_env_for, profile_for
from llm_resolver.startup import authenticate_identity, default_login_flow

app = typer.Typer(help="Backend authentication management")


def _load(backend: str, console: Console) -> tuple[Settings, BackendIdentity]:
    try:
        settings = Settings.load()
        identity = parse_backend_selector(backend)
        if profile_for(identity) is None:
            raise ValueError(f"No provider profile for backend '{identity}'")
    except ConfigError as e:
        StartupPresenter(console).present_error(e)
        raise typer.Exit(1) from None
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None
    return settings, identity


@app.command()
def login(
    backend: str = typer.Argument(
        "remote-managed", help="Backend to log in to (e.g., 'remote-managed', 'anthropic')"
    ),
    idp: str = typer.Option(
        None,
        "--idp",
        help=f"Identity provider for browser login ({', '.join(RemoteService.IDENTITY_PROVIDERS)})",
    ),
    no_browser: bool = typer.Option(False, "--no-browser", help="Print the URL instead"),
) -> None:
    """Log in to a backend and store the credential.

    The remote managed service uses browser login; other backends prompt
    for an API key.

    Example:
        llmr auth login remote-managed --idp google
    """
    console = Console()
    settings, identity = _load(backend, console)

    if identity.is_local:
        console.print(f"[yellow]Local backend '{identity}' needs no login.[/yellow]")
        return

    if idp:
        idp = idp.lower()
        if idp not in RemoteService.IDENTITY_PROVIDERS:
            console.print(f"[red]Error: unknown identity provider '{idp}'[/red]")
            raise typer.Exit(1) from None
        settings = replace(settings, login_idp=idp)

    store = FileSystemCredentialStore(str(settings.home_dir))
    flow = default_login_flow(identity, settings, open_browser=not no_browser)

    console.print(f"[cyan]Logging in to {identity}...[/cyan]")
    try:
        outcome = asyncio.run(
            authenticate_identity(
                identity, settings, store=store, force_login=True, login_flow=flow
            )
        )
    except KeyboardInterrupt:
        console.print("[yellow]Login cancelled[/yellow]")
        raise typer.Exit(130) from None
    except StartupError as e:
        StartupPresenter(console).present_error(e)
        raise typer.Exit(1) from None

    console.print(
        Panel(
            f"[green]Successfully authenticated![/green]\n\n"
            f"Backend: {identity}\n"
            f"Credential: {describe_credential(outcome.credential)}\n"
            f"Stored at: {store.location(identity.family)}",
            title="Login Success",
            border_style="green",
        )
    )


@app.command()
def status(
    backend: str = typer.Argument("remote-managed", help="Backend to inspect"),
) -> None:
    """Show the stored credential for a backend (secrets are masked).

    Example:
        llmr auth status anthropic
    """
    console = Console()
    settings, identity = _load(backend, console)
    store = FileSystemCredentialStore(str(settings.home_dir))

    table = Table(title=f"Auth Status: {identity}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Backend", str(identity))

    if identity.is_local:
        table.add_row("Status", "[green]No authentication required[/green]")
        console.print(table)
        return

    env_var = api_key_env_for(identity)
    env_key = settings.api_key_for(identity)
    table.add_row(env_var, "[green]set[/green]" if env_key else "not set")

    try:
        credential = store.load(identity.family)
    except CredentialStoreCorrupt as e:
        console.print(
            Panel(
                f"[red]{e}[/red]\n\nInspect or remove the file, then run "
                f"'llmr auth login {identity}'.",
                title="Corrupt Credential File",
                border_style="red",
            )
        )
        raise typer.Exit(1) from None
    except StorageError as e:
        console.print(
            Panel(
                f"[red]Cannot read {store.location(identity.family)}: {e}[/red]",
                title="Credential File Error",
                border_style="red",
            )
        )
        raise typer.Exit(1) from None

    table.add_row("Stored credential", describe_credential(credential))
    table.add_row("Storage path", store.location(identity.family))

    if isinstance(credential, SessionToken) and credential.is_expired():
        table.add_row("Status", "[yellow]Session expired[/yellow]")
    elif isinstance(credential, NoCredential) and not env_key:
        table.add_row("Status", "[yellow]Not authenticated[/yellow]")
        console.print(table)
        console.print(f"Run 'llmr auth login {identity}' to authenticate.")
        raise typer.Exit(1) from None
    else:
        table.add_row("Status", "[green]Authenticated[/green]")

    console.print(table)


@app.command()
def logout(
    backend: str = typer.Argument("remote-managed", help="Backend to log out from"),
) -> None:
    """Remove the stored credential for a backend.

    Example:
        llmr auth logout remote-managed
    """
    console = Console()
    settings, identity = _load(backend, console)
    store = FileSystemCredentialStore(str(settings.home_dir))

    try:
        store.clear(identity.family)
    except StorageError as e:
        console.print(Panel(f"[red]{e}[/red]", title="Logout Error", border_style="red"))
        raise typer.Exit(1) from None

    console.print(
        Panel(
            f"[green]Logged out from {identity}[/green]",
            title="Logout Success",
            border_style="green",
        )
    )
