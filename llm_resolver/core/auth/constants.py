"""
Centralized constants for the auth package.

Constants are grouped by:
- Configurable defaults: Values users may want to override
- Protocol constants: Fixed by OAuth/PKCE specifications
- Internal constants: Implementation details
- Validation limits: Valid ranges for parameters
"""

from __future__ import annotations

# =============================================================================
# CONFIGURABLE DEFAULTS
# =============================================================================
# These values can be overridden via LoginConfig or environment variables.


class RemoteService:
    """Endpoints of the remote managed inference service.

    The authorization server brokers login through a third-party identity
    provider and issues session tokens for the inference API.
    """

    API_BASE_URL = "https://cloud-api.near.ai/v1"
    AUTH_BASE_URL = "https://private.near.ai"

    # Paths on AUTH_BASE_URL
    AUTHORIZE_PATH = "/v1/auth/{idp}"
    TOKEN_PATH = "/v1/auth/token"
    SESSION_PATH = "/v1/auth/session"

    # Third-party identity providers the authorization server accepts
    IDENTITY_PROVIDERS = ("github", "google")
    DEFAULT_IDENTITY_PROVIDER = "github"


class LoginDefaults:
    """Default values for the interactive login flow.

    - Port 1455: Unregistered port, unlikely to conflict with common services
    - 300s timeout: 5 minutes is reasonable for user interaction
    - 10s HTTP timeout: token exchange and validation are small requests
    """

    CALLBACK_PORT = 1455
    CALLBACK_PATH = "/auth/callback"
    CALLBACK_TIMEOUT = 300  # seconds (5 minutes)

    HTTP_REQUEST_TIMEOUT = 10  # seconds

    # Delay before the callback listener stops after serving the result page
    PAGE_SHUTDOWN_DELAY = 1.0


class SessionDefaults:
    """Session token lifetime handling.

    Tokens expiring within the threshold are treated as expired so the
    application never starts with a token about to die mid-request.
    """

    EXPIRY_THRESHOLD_SECONDS = 60

    # Validation network failures get exactly one automatic retry
    TRANSIENT_RETRIES = 1


# =============================================================================
# PROTOCOL CONSTANTS (Fixed by Standards)
# =============================================================================


class OAuthProtocol:
    """Constants defined by OAuth 2.0 and related RFCs."""

    HTTP_OK = 200
    HTTP_NOT_FOUND = 404

    # Status codes meaning "credential not accepted"
    REJECTION_STATUS_CODES = (401, 403)

    GRANT_TYPE_AUTH_CODE = "authorization_code"


class PkceProtocol:
    """Constants defined by PKCE (RFC 7636).

    The code verifier must be 43-128 characters from the unreserved set.
    """

    # token_urlsafe(64) yields 86 characters
    CODE_VERIFIER_BYTES = 64

    CODE_CHALLENGE_METHOD = "S256"


# =============================================================================
# INTERNAL CONSTANTS
# =============================================================================


class StorageDefaults:
    """Filesystem storage defaults."""

    HOME_DIR_NAME = ".llm-resolver"
    CREDENTIALS_DIR_NAME = "credentials"

    # octal 0600 = rw------- (owner only)
    FILE_PERMISSIONS = 0o600

    # Bumped when the on-disk record changes incompatibly
    SCHEMA_VERSION = 1


# =============================================================================
# VALIDATION RANGES
# =============================================================================


class ValidationLimits:
    """Valid ranges for user-configurable parameters."""

    # Non-privileged ports
    MIN_PORT = 1024
    MAX_PORT = 65535

    MIN_TIMEOUT_SECONDS = 1
    MAX_TIMEOUT_SECONDS = 3600  # 1 hour

    # Shortest plausible API key or session token
    MIN_SECRET_LENGTH = 8


__all__ = [
    "RemoteService",
    "LoginDefaults",
    "SessionDefaults",
    "OAuthProtocol",
    "PkceProtocol",
    "StorageDefaults",
    "ValidationLimits",
]
