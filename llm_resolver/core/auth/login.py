"""Interactive login flows.

Two flows exist:
- BrowserLoginFlow: OAuth authorization code + PKCE through a third-party
  identity provider, for the remote managed service
- ApiKeyPromptFlow: asks the user to paste an API key, for direct vendor
  and private inference backends

Both are async and cancellable. Neither touches the credential store; the
orchestrator persists whatever a flow returns.
"""

from __future__ import annotations

import abc
import asyncio
import logging
import typing
import urllib.parse
import webbrowser
from dataclasses import dataclass

from rich.console import Console
from rich.prompt import Prompt

from llm_resolver.core.backend import BackendIdentity

from .callback_server import CallbackHTTPServer
from .constants import LoginDefaults, RemoteService, ValidationLimits
from .credentials import ApiKey, Credential, SessionToken
from .exceptions import LoginFlowError, ValidationError
from .http_client import HttpClient, HttpxHttpClient
from .pkce import PkceCodes, generate_pkce
from .token_exchanger import TokenExchangeContext, TokenExchanger
from .validation import validate_port, validate_range, validate_string, validate_url

_logger = logging.getLogger(__name__)


@dataclass
class LoginConfig:
    """Configuration for the browser login flow.

    Attributes:
        auth_url: Authorization server base URL
        identity_provider: Third-party identity provider (github, google)
        port: Local callback port (1024-65535, or 0 for any free port)
        timeout: Seconds to wait for the callback (1-3600)
        open_browser: Open the authorization URL automatically

    Raises:
        ValidationError: If any parameter fails validation
    """

    auth_url: str = RemoteService.AUTH_BASE_URL
    identity_provider: str = RemoteService.DEFAULT_IDENTITY_PROVIDER
    port: int = LoginDefaults.CALLBACK_PORT
    timeout: float = LoginDefaults.CALLBACK_TIMEOUT
    open_browser: bool = True

    def __post_init__(self) -> None:
        validate_url(self.auth_url, "auth_url")
        validate_string(self.identity_provider, "identity_provider")
        if self.identity_provider not in RemoteService.IDENTITY_PROVIDERS:
            raise ValidationError(
                "identity_provider",
                self.identity_provider,
                f"must be one of {', '.join(RemoteService.IDENTITY_PROVIDERS)}",
            )
        if self.port != 0:
            validate_port(self.port, "port")
        validate_range(
            self.timeout,
            "timeout",
            min_value=ValidationLimits.MIN_TIMEOUT_SECONDS,
            max_value=ValidationLimits.MAX_TIMEOUT_SECONDS,
        )
        self.auth_url = self.auth_url.rstrip("/")


class LoginFlow(abc.ABC):
    """An interactive way of obtaining a credential."""

    @abc.abstractmethod
    async def login(self, identity: BackendIdentity) -> Credential:
        """Run the flow for ``identity``.

        Raises:
            LoginFlowError: If the flow fails, times out or is abandoned
            asyncio.CancelledError: If the surrounding task is cancelled
        """


class BrowserLoginFlow(LoginFlow):
    """Browser-based login for the remote managed service.

    Steps:
    1. Bind the localhost callback listener
    2. Build the authorization URL (PKCE challenge + state)
    3. Open the browser, or print the URL when that is not possible
    4. Wait for the callback, bounded by the login timeout
    5. Exchange the authorization code for a session token

    The listener is shut down on every exit path, including cancellation.

    Example:
        >>> flow = BrowserLoginFlow(LoginConfig(identity_provider="google"))
        >>> session = await flow.login(BackendIdentity.remote_managed())
    """

    def __init__(
        self,
        config: LoginConfig | None = None,
        http_client: HttpClient | None = None,
        console: Console | None = None,
    ) -> None:
        self.config = config or LoginConfig()
        self.exchanger = TokenExchanger(http_client or HttpxHttpClient())
        self.console = console or Console(stderr=True)
        # Exposed for tests that drive the callback themselves
        self.server: CallbackHTTPServer | None = None

    def authorization_url(self, server: CallbackHTTPServer, pkce: PkceCodes) -> str:
        path = RemoteService.AUTHORIZE_PATH.format(idp=self.config.identity_provider)
        params = {
            "response_type": "code",
            "redirect_uri": server.redirect_uri,
            "state": server.state,
            "code_challenge": pkce.code_challenge,
            "code_challenge_method": pkce.method,
        }
        return f"{self.config.auth_url}{path}?{urllib.parse.urlencode(params)}"

    async def login(self, identity: BackendIdentity) -> SessionToken:
        loop = asyncio.get_running_loop()
        try:
            server = CallbackHTTPServer(("localhost", self.config.port), loop)
        except OSError as e:
            raise LoginFlowError(
                f"Cannot listen for the login callback on port {self.config.port}: {e.strerror}"
            ) from e

        self.server = server
        pkce = generate_pkce()
        auth_url = self.authorization_url(server, pkce)

        try:
            server.start()
            self._present(auth_url)

            try:
                grant = await asyncio.wait_for(server.result, timeout=self.config.timeout)
            except asyncio.TimeoutError as e:
                raise LoginFlowError(
                    f"No login callback received within {self.config.timeout:g}s"
                ) from e

            _logger.debug("Authorization code received for %s", identity)
            ctx = TokenExchangeContext(
                code=grant.code,
                redirect_uri=server.redirect_uri,
                pkce=pkce,
                token_endpoint=f"{self.config.auth_url}{RemoteService.TOKEN_PATH}",
                identity_provider=self.config.identity_provider,
            )
            return await self.exchanger.exchange(ctx)
        finally:
            server.close()

    def _present(self, auth_url: str) -> None:
        opened = False
        if self.config.open_browser:
            try:
                opened = webbrowser.open(auth_url)
            except webbrowser.Error as e:
                _logger.debug("Could not open a browser: %s", e)

        if opened:
            self.console.print(
                f"Opened your browser to log in with {self.config.identity_provider}."
            )
            self.console.print(f"If nothing happened, visit:\n{auth_url}", style="dim")
        else:
            self.console.print(f"Visit this URL to log in:\n{auth_url}")


class ApiKeyPromptFlow(LoginFlow):
    """Ask the user for an API key.

    The prompt hides input. It runs in a worker thread so the event loop
    stays responsive and the wait can be cancelled.
    """

    def __init__(
        self,
        prompt: typing.Callable[[str], str] | None = None,
        console: Console | None = None,
    ) -> None:
        self.console = console or Console(stderr=True)
        self._prompt = prompt or self._rich_prompt

    def _rich_prompt(self, question: str) -> str:
        return Prompt.ask(question, password=True, console=self.console)

    async def login(self, identity: BackendIdentity) -> ApiKey:
        question = f"Enter the API key for '{identity}'"
        try:
            answer = await asyncio.to_thread(self._prompt, question)
        except EOFError as e:
            raise LoginFlowError("API key prompt was abandoned") from e

        secret = (answer or "").strip()
        if not secret:
            raise LoginFlowError("No API key entered")
        try:
            return ApiKey(secret=secret)
        except ValidationError as e:
            raise LoginFlowError(f"API key rejected: {e.message}") from e


__all__ = [
    "LoginConfig",
    "LoginFlow",
    "BrowserLoginFlow",
    "ApiKeyPromptFlow",
]
