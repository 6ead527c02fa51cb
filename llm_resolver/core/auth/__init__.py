"""
Authentication for resolved backends.

This package provides:
- Credential variants (API key, session token, none) and their storage
- Browser login (OAuth authorization code + PKCE) and API key prompts
- Remote validation of stored sessions
- The AuthOrchestrator state machine tying these together

Basic Usage:
    >>> from llm_resolver.core.auth import AuthOrchestrator, FileSystemCredentialStore
    >>>
    >>> orchestrator = AuthOrchestrator(identity, FileSystemCredentialStore())
    >>> state = await orchestrator.authenticate()
    >>> state.is_ready
    True

For Testing:
    >>> from llm_resolver.core.auth import InMemoryCredentialStore, MockHttpClient
    >>> store = InMemoryCredentialStore()
    >>> # No file I/O, data persists only in memory
"""

from .callback_server import AuthorizationGrant, CallbackHandler, CallbackHTTPServer
from .credentials import (
    ApiKey,
    Credential,
    NoCredential,
    SessionToken,
    credential_from_record,
    mask_secret,
)
from .exceptions import (
    AuthError,
    AuthRejected,
    AuthTransientFailure,
    ConfigurationError,
    CredentialStoreCorrupt,
    LoginFlowError,
    StorageError,
    ValidationError,
)
from .http_client import (
    HttpClient,
    HttpClientConfig,
    HttpError,
    HttpResponse,
    HttpxHttpClient,
    MockHttpClient,
)
from .login import ApiKeyPromptFlow, BrowserLoginFlow, LoginConfig, LoginFlow
from .orchestrator import AuthOrchestrator, AuthPhase, AuthState
from .pkce import PkceCodes, generate_pkce
from .session import SessionValidator
from .storage import CredentialStore, FileSystemCredentialStore, InMemoryCredentialStore
from .token_exchanger import TokenExchangeContext, TokenExchanger

__all__ = [
    # Credentials
    "Credential",
    "ApiKey",
    "SessionToken",
    "NoCredential",
    "credential_from_record",
    "mask_secret",
    # Storage
    "CredentialStore",
    "FileSystemCredentialStore",
    "InMemoryCredentialStore",
    # Orchestration
    "AuthOrchestrator",
    "AuthPhase",
    "AuthState",
    "SessionValidator",
    # Login
    "LoginFlow",
    "LoginConfig",
    "BrowserLoginFlow",
    "ApiKeyPromptFlow",
    "CallbackHTTPServer",
    "CallbackHandler",
    "AuthorizationGrant",
    "TokenExchanger",
    "TokenExchangeContext",
    "generate_pkce",
    "PkceCodes",
    # HTTP client
    "HttpClient",
    "HttpClientConfig",
    "HttpResponse",
    "HttpError",
    "HttpxHttpClient",
    "MockHttpClient",
    # Exceptions
    "AuthError",
    "ValidationError",
    "ConfigurationError",
    "StorageError",
    "CredentialStoreCorrupt",
    "AuthTransientFailure",
    "AuthRejected",
    "LoginFlowError",
]
