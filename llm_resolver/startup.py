"""Startup pipeline: resolve, authenticate, build.

``bootstrap()`` is the entry point the application calls once at startup.
Each stage finishes before the next begins, and no provider chain is built
unless the primary backend is READY.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from llm_resolver.core.auth.credentials import Credential
from llm_resolver.core.auth.http_client import HttpClient, HttpxHttpClient
from llm_resolver.core.auth.login import ApiKeyPromptFlow, BrowserLoginFlow, LoginFlow
from llm_resolver.core.auth.orchestrator import AuthOrchestrator, AuthState
from llm_resolver.core.auth.session import SessionValidator
from llm_resolver.core.auth.storage import CredentialStore, FileSystemCredentialStore
from llm_resolver.core.backend import BackendIdentity, BackendKind
from llm_resolver.core.config.settings import Settings
from llm_resolver.core.error_types import ErrorType, FailureReason
from llm_resolver.core.exceptions import ProviderBuildError, StartupError
from llm_resolver.core.logging import startup_correlation
from llm_resolver.core.provider.builder import ProviderChainBuilder
from llm_resolver.core.provider.catalog import profile_for
from llm_resolver.core.provider.chain import ProviderChain
from llm_resolver.core.provider.discovery import ModelDiscovery
from llm_resolver.core.resolver import BackendResolver

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthOutcome:
    """Result of authenticating one identity.

    Attributes:
        identity: Backend that was authenticated
        state: Terminal auth state (always READY; failures raise)
        credential: Credential to hand to the provider builder
        history: Every state visited, in order
    """

    identity: BackendIdentity
    state: AuthState
    credential: Credential
    history: tuple[AuthState, ...]


def default_login_flow(
    identity: BackendIdentity,
    settings: Settings,
    http_client: HttpClient | None = None,
    *,
    open_browser: bool = True,
) -> LoginFlow:
    """Browser login for the remote managed service, a key prompt otherwise."""
    if identity.kind is BackendKind.REMOTE_MANAGED:
        return BrowserLoginFlow(
            settings.login_config(open_browser=open_browser),
            http_client=http_client,
        )
    return ApiKeyPromptFlow()


async def authenticate_identity(
    identity: BackendIdentity,
    settings: Settings,
    *,
    store: CredentialStore | None = None,
    interactive: bool = True,
    force_login: bool = False,
    http_client: HttpClient | None = None,
    login_flow: LoginFlow | None = None,
) -> AuthOutcome:
    """Authenticate ``identity`` (also used by the setup wizard).

    Raises:
        StartupError: If authentication ends in FAILED
        ProviderBuildError: If no provider profile exists for ``identity``
        asyncio.CancelledError: If cancelled during interactive login
    """
    if profile_for(identity) is None:
        raise ProviderBuildError(
            f"No provider profile for backend '{identity}'",
            error_type=ErrorType.UNKNOWN_IDENTITY,
        )

    http = http_client or HttpxHttpClient()
    orchestrator = AuthOrchestrator(
        identity,
        store or FileSystemCredentialStore(str(settings.home_dir)),
        api_key=None if force_login else settings.api_key_for(identity),
        validator=SessionValidator(settings.remote_auth_url, http_client=http),
        login_flow=login_flow or default_login_flow(identity, settings, http),
        interactive=interactive,
        force_login=force_login,
    )

    state = await orchestrator.authenticate()
    if not state.is_ready or orchestrator.credential is None:
        raise StartupError(
            identity,
            state.reason or FailureReason.MISCONFIGURED,
            state.detail,
        )

    return AuthOutcome(
        identity=identity,
        state=state,
        credential=orchestrator.credential,
        history=orchestrator.history,
    )


async def _fallback_entries(
    settings: Settings,
    primary: BackendIdentity,
    builder: ProviderChainBuilder,
    store: CredentialStore,
    http_client: HttpClient | None,
) -> list[tuple[BackendIdentity, Credential]]:
    fallback = settings.fallback_backend
    if fallback is None or fallback == primary:
        return []

    try:
        outcome = await authenticate_identity(
            fallback, settings, store=store, interactive=False, http_client=http_client
        )
        builder.handle_for(fallback, outcome.credential)
    except (StartupError, ProviderBuildError) as e:
        _logger.warning("Skipping fallback backend '%s': %s", fallback, e)
        return []

    return [(fallback, outcome.credential)]


async def bootstrap(
    settings: Settings | None = None,
    *,
    interactive: bool | None = None,
    store: CredentialStore | None = None,
    resolver: BackendResolver | None = None,
    builder: ProviderChainBuilder | None = None,
    http_client: HttpClient | None = None,
    login_flow: LoginFlow | None = None,
) -> ProviderChain:
    """Resolve the backend, authenticate it and build the provider chain.

    Args:
        settings: Loaded settings (read from the environment if None)
        interactive: Allow interactive login; defaults to not LLM_NO_ONBOARD
        store: Credential store (default: the per-user file store)
        resolver: Backend resolver
        builder: Provider chain builder
        http_client: HTTP client for authentication requests
        login_flow: Interactive flow for the primary backend

    Returns:
        The ready provider chain; check ``chain.degraded`` for static data

    Raises:
        StartupError: If the primary backend cannot be authenticated
        ProviderBuildError: If the primary provider cannot be constructed
        ConfigError: If the environment is invalid
    """
    settings = settings or Settings.load()
    if interactive is None:
        interactive = not settings.no_onboard
    store = store or FileSystemCredentialStore(str(settings.home_dir))
    resolver = resolver or BackendResolver()
    builder = builder or ProviderChainBuilder(
        ModelDiscovery(settings.discovery_timeout),
        remote_base_url=settings.remote_base_url,
    )

    with startup_correlation() as run_id:
        _logger.debug("Startup %s", run_id)

        identity = await resolver.resolve(settings.resolution_input())

        outcome = await authenticate_identity(
            identity,
            settings,
            store=store,
            interactive=interactive,
            http_client=http_client,
            login_flow=login_flow,
        )

        fallbacks = await _fallback_entries(settings, identity, builder, store, http_client)
        chain = await builder.build(identity, outcome.credential, fallbacks)

        _logger.info(
            "Ready: %s%s",
            " -> ".join(str(entry.handle.identity) for entry in chain),
            " (degraded)" if chain.degraded else "",
        )
        return chain


__all__ = [
    "AuthOutcome",
    "authenticate_identity",
    "bootstrap",
    "default_login_flow",
]
