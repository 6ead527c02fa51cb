"""Error type enumeration for LLM Resolver.

Provides type-safe categorization of startup failures for logs and
user-facing messages.
"""

from enum import Enum


class ErrorType(str, Enum):
    """Error type categories raised or absorbed during startup.

    Absorbed types never leave the component that produced them:
    - PROBE_TIMEOUT is reported as ``reachable=False``
    - DISCOVERY_UNAVAILABLE degrades the provider chain to static data

    Every other type halts startup before a provider chain is built.
    """

    # Absorbed locally
    PROBE_TIMEOUT = "probe_timeout"  # Local endpoint did not answer in time
    DISCOVERY_UNAVAILABLE = "discovery_unavailable"  # Model list fetch failed

    # Programmer errors
    RESOLUTION_AMBIGUOUS = "resolution_ambiguous"  # Decision table fell through
    UNKNOWN_IDENTITY = "unknown_identity"  # No provider profile for identity

    # Authentication
    AUTH_TRANSIENT = "auth_transient"  # Network-level failure talking to auth server
    AUTH_REJECTED = "auth_rejected"  # Credential expired, revoked or invalid
    CREDENTIAL_STORE_CORRUPT = "credential_store_corrupt"  # Unreadable credential file

    # Configuration
    CONFIG_ERROR = "config_error"  # Invalid environment value


class FailureReason(str, Enum):
    """Reason attached to a ``Failed`` authentication state."""

    TRANSIENT = "transient"  # Validation hit a network error twice
    REJECTED = "rejected"  # Server rejected the credential and no re-login possible
    CANCELLED = "cancelled"  # User abort or process interrupt during login
    UNAVAILABLE = "unavailable"  # Login required but running headless
    LOGIN_FAILED = "login_failed"  # Login flow errored, timed out or was abandoned
    CORRUPT_CREDENTIALS = "corrupt_credentials"  # Credential file unreadable
    MISCONFIGURED = "misconfigured"  # Identity cannot be authenticated as configured

    @property
    def remediation(self) -> str:
        """Short, actionable hint shown next to the failure."""
        return _REMEDIATIONS[self]

    @property
    def retryable(self) -> bool:
        """Whether re-running the whole process may succeed without user action."""
        return self is FailureReason.TRANSIENT


_REMEDIATIONS = {
    FailureReason.TRANSIENT: "Check your network connection and try again.",
    FailureReason.REJECTED: "Re-authenticate with 'llmr auth login {backend}'.",
    FailureReason.CANCELLED: "Login was cancelled. Run 'llmr auth login {backend}' to retry.",
    FailureReason.UNAVAILABLE: (
        "Interactive login is disabled (headless mode). Run 'llmr auth login {backend}' "
        "in an interactive terminal or set an API key for this backend."
    ),
    FailureReason.LOGIN_FAILED: "Re-authenticate with 'llmr auth login {backend}'.",
    FailureReason.CORRUPT_CREDENTIALS: (
        "Inspect or remove the credential file, then run 'llmr auth login {backend}'."
    ),
    FailureReason.MISCONFIGURED: "Check the LLM_BACKEND and API key settings.",
}
