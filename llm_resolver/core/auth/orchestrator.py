"""Authentication state machine for a resolved backend.

Phases:

    UNAUTHENTICATED
      ├─ local backend ───────────────────────────────► READY
      ├─ API key (environment or store) ──────────────► READY
      ├─ stored session ──► SESSION_PENDING_VALIDATION
      │                       ├─ accepted ────────────► READY
      │                       ├─ rejected / expired ──► AWAITING_INTERACTIVE_LOGIN
      │                       ├─ same, headless ──────► FAILED(rejected)
      │                       └─ network error x2 ────► FAILED(transient)
      └─ nothing stored ──► AWAITING_INTERACTIVE_LOGIN
                              ├─ headless ────────────► FAILED(unavailable)
                              ├─ login succeeded ─────► READY
                              ├─ cancelled ───────────► FAILED(cancelled)
                              └─ error / timeout ─────► FAILED(login_failed)

READY and FAILED are terminal.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from llm_resolver.core.backend import BackendIdentity, BackendKind
from llm_resolver.core.error_types import FailureReason

from .constants import SessionDefaults
from .credentials import ApiKey, Credential, NoCredential, SessionToken
from .exceptions import (
    AuthRejected,
    AuthTransientFailure,
    ConfigurationError,
    CredentialStoreCorrupt,
    LoginFlowError,
    StorageError,
    ValidationError,
)
from .login import ApiKeyPromptFlow, BrowserLoginFlow, LoginFlow
from .session import SessionValidator
from .storage import CredentialStore

_logger = logging.getLogger(__name__)


class AuthPhase(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AWAITING_INTERACTIVE_LOGIN = "awaiting_interactive_login"
    SESSION_PENDING_VALIDATION = "session_pending_validation"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class AuthState:
    """One point in the authentication state machine.

    Attributes:
        phase: Current phase
        reason: Set only for FAILED
        detail: Human-readable explanation (never contains secrets)
    """

    phase: AuthPhase
    reason: FailureReason | None = None
    detail: str | None = None

    @classmethod
    def failed(cls, reason: FailureReason, detail: str) -> AuthState:
        return cls(AuthPhase.FAILED, reason=reason, detail=detail)

    @property
    def is_terminal(self) -> bool:
        return self.phase in (AuthPhase.READY, AuthPhase.FAILED)

    @property
    def is_ready(self) -> bool:
        return self.phase is AuthPhase.READY

    def __str__(self) -> str:
        if self.reason is not None:
            return f"{self.phase.value}({self.reason.value})"
        return self.phase.value


class AuthOrchestrator:
    """Drive one backend identity to READY or FAILED.

    Responsibilities:
    - Skip authentication entirely for local backends (no remote calls, no
      store access)
    - Prefer API keys, then stored sessions, then interactive login
    - Validate stored sessions with one retry on network failure
    - Persist credentials only after a successful login or validation
    - Run at most one interactive flow

    Example:
        >>> orchestrator = AuthOrchestrator(identity, FileSystemCredentialStore())
        >>> state = await orchestrator.authenticate()
        >>> if state.is_ready:
        ...     credential = orchestrator.credential
    """

    def __init__(
        self,
        identity: BackendIdentity,
        store: CredentialStore,
        *,
        api_key: str | None = None,
        validator: SessionValidator | None = None,
        login_flow: LoginFlow | None = None,
        interactive: bool = True,
        force_login: bool = False,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            identity: Resolved backend
            store: Credential store for this user
            api_key: API key from the environment, if any
            validator: Session validator (default talks to the remote service)
            login_flow: Interactive flow (default depends on the backend kind)
            interactive: False in headless mode; login then fails fast
            force_login: Ignore the API key and stored credential and go
                straight to interactive login (used by `llmr auth login`)
        """
        self.identity = identity
        self.store = store
        self.api_key = api_key
        self.interactive = interactive
        self.force_login = force_login
        self._validator = validator
        self._login_flow = login_flow

        self._state = AuthState(AuthPhase.UNAUTHENTICATED)
        self._history: list[AuthState] = [self._state]
        self._credential: Credential | None = None
        self._login_attempted = False

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def history(self) -> tuple[AuthState, ...]:
        """Every state visited, in order, starting with UNAUTHENTICATED."""
        return tuple(self._history)

    @property
    def credential(self) -> Credential | None:
        """Resolved credential; set only once READY."""
        return self._credential

    @property
    def validator(self) -> SessionValidator:
        if self._validator is None:
            self._validator = SessionValidator()
        return self._validator

    @property
    def login_flow(self) -> LoginFlow:
        if self._login_flow is None:
            if self.identity.kind is BackendKind.REMOTE_MANAGED:
                self._login_flow = BrowserLoginFlow()
            else:
                self._login_flow = ApiKeyPromptFlow()
        return self._login_flow

    async def authenticate(self) -> AuthState:
        """Run the state machine to a terminal phase.

        Calling again after a terminal phase returns that phase without
        doing any work.

        Raises:
            asyncio.CancelledError: If cancelled during login; the state is
                FAILED(cancelled) and nothing was persisted
        """
        if self._state.is_terminal:
            return self._state

        if self.identity.is_local:
            return self._ready(self._local_credential())

        if self.force_login:
            return await self._interactive_login()

        if self.api_key:
            try:
                return self._ready(ApiKey(secret=self.api_key))
            except ValidationError as e:
                return self._fail(FailureReason.MISCONFIGURED, f"API key for {self.identity}: {e}")

        try:
            stored = self.store.load(self.identity.family)
        except ConfigurationError as e:
            return self._fail(FailureReason.MISCONFIGURED, str(e))
        except CredentialStoreCorrupt as e:
            return self._fail(FailureReason.CORRUPT_CREDENTIALS, str(e))
        except StorageError as e:
            return self._fail(
                FailureReason.CORRUPT_CREDENTIALS,
                f"Cannot read {self.store.location(self.identity.family)}: {e}",
            )

        if isinstance(stored, ApiKey):
            return self._ready(stored)

        if isinstance(stored, SessionToken):
            state = await self._validate_session(stored)
            if state is not None:
                return state

        return await self._interactive_login()

    def _local_credential(self) -> Credential:
        # Local OpenAI-compatible servers may be configured with a key
        if self.api_key and self.identity.kind is BackendKind.LOCAL_OPENAI_COMPATIBLE:
            try:
                return ApiKey(secret=self.api_key)
            except ValidationError:
                _logger.warning("Ignoring malformed API key for local server %s", self.identity)
        return NoCredential()

    async def _validate_session(self, session: SessionToken) -> AuthState | None:
        """Validate a stored session.

        Returns:
            A terminal state, or None when interactive login is needed
        """
        self._transition(AuthState(AuthPhase.SESSION_PENDING_VALIDATION))

        if session.is_expired():
            _logger.info("Stored session for %s has expired", self.identity)
            return self._rejected(f"Stored session for {self.identity} has expired")

        attempts = 1 + SessionDefaults.TRANSIENT_RETRIES
        for attempt in range(1, attempts + 1):
            try:
                validated = await self.validator.validate(session)
            except AuthRejected as e:
                _logger.info("Stored session for %s was rejected: %s", self.identity, e)
                return self._rejected(str(e))
            except AuthTransientFailure as e:
                if attempt < attempts:
                    _logger.info("Retrying session validation for %s", self.identity)
                    continue
                return self._fail(FailureReason.TRANSIENT, str(e))

            if validated is not session:
                try:
                    self.store.save(self.identity.family, validated)
                except StorageError as e:
                    # The session is valid; losing the new expiry is harmless
                    _logger.warning("Could not update stored session: %s", e)
            return self._ready(validated)

        return self._fail(FailureReason.TRANSIENT, "Session validation did not complete")

    def _rejected(self, detail: str) -> AuthState | None:
        """Give up on the stored session: re-login, or FAILED(rejected) headless."""
        if self.interactive:
            return None
        return self._fail(FailureReason.REJECTED, detail)

    async def _interactive_login(self) -> AuthState:
        self._transition(AuthState(AuthPhase.AWAITING_INTERACTIVE_LOGIN))

        if not self.interactive:
            return self._fail(
                FailureReason.UNAVAILABLE,
                f"{self.identity} needs an interactive login but interaction is disabled",
            )

        if self._login_attempted:
            return self._fail(FailureReason.LOGIN_FAILED, "Login was already attempted")
        self._login_attempted = True

        try:
            credential = await self.login_flow.login(self.identity)
        except asyncio.CancelledError:
            self._fail(FailureReason.CANCELLED, "Login was cancelled")
            raise
        except LoginFlowError as e:
            return self._fail(FailureReason.LOGIN_FAILED, str(e))

        try:
            self.store.save(self.identity.family, credential)
        except StorageError as e:
            return self._fail(FailureReason.CORRUPT_CREDENTIALS, str(e))

        _logger.info("Logged in to %s", self.identity)
        return self._ready(credential)

    def _ready(self, credential: Credential) -> AuthState:
        self._credential = credential
        return self._transition(AuthState(AuthPhase.READY))

    def _fail(self, reason: FailureReason, detail: str) -> AuthState:
        return self._transition(AuthState.failed(reason, detail))

    def _transition(self, state: AuthState) -> AuthState:
        _logger.debug("Auth %s: %s -> %s", self.identity, self._state, state)
        self._state = state
        self._history.append(state)
        return state


__all__ = [
    "AuthPhase",
    "AuthState",
    "AuthOrchestrator",
]
