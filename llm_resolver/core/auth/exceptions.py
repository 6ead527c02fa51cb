"""
Exception hierarchy for the auth package.

All exceptions inherit from AuthError, so callers can catch every
authentication problem with a single except clause. Messages never contain
secrets: storage errors name the file, never its contents.

Example:
    >>> try:
    ...     await flow.login(identity)
    ... except AuthError as e:
    ...     print(f"Authentication failed: {e}")
"""

from __future__ import annotations

from llm_resolver.core.error_types import ErrorType


class AuthError(Exception):
    """Base exception for all authentication errors."""

    error_type: ErrorType | None = None


class ValidationError(AuthError):
    """Raised when input validation fails.

    Attributes:
        field: Name of the field that failed validation
        value: The invalid value (omitted from the message when secret)
        message: Human-readable explanation of the validation error

    Example:
        >>> LoginConfig(port=99999)
        ValidationError: Invalid 'port': must be at most 65535 (got 99999)
    """

    def __init__(self, field: str, value: object, message: str, *, secret: bool = False) -> None:
        self.field = field
        self.value = None if secret else value
        self.message = message
        shown = "<redacted>" if secret else repr(value)
        super().__init__(f"Invalid {field!r}: {message} (got {shown})")

    def __repr__(self) -> str:
        return (
            f"ValidationError(field={self.field!r}, value={self.value!r}, message={self.message!r})"
        )


class ConfigurationError(AuthError):
    """Raised when auth configuration is incomplete or contradictory.

    Example:
        >>> store.save("remote-managed", None)
        ConfigurationError: Cannot save None; use NoCredential() or clear()
    """


class StorageError(AuthError):
    """Raised when credential storage operations fail.

    Covers I/O errors and permission problems.
    """


class CredentialStoreCorrupt(StorageError):
    """Raised when a credential file exists but cannot be parsed.

    Fatal for that backend. The file is left in place for the user to
    inspect; it is never removed automatically.

    Attributes:
        path: Location of the unreadable file
    """

    error_type = ErrorType.CREDENTIAL_STORE_CORRUPT

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(f"Credential file {path} is unreadable: {detail}")


class AuthTransientFailure(AuthError):
    """Network-level failure talking to the authorization server.

    Eligible for a single automatic retry before surfacing.
    """

    error_type = ErrorType.AUTH_TRANSIENT


class AuthRejected(AuthError):
    """The server rejected a credential (invalid, expired or revoked).

    Forces re-login; never retried silently.
    """

    error_type = ErrorType.AUTH_REJECTED


class LoginFlowError(AuthError):
    """Raised when the interactive login flow fails.

    Covers callback errors, state mismatches, failed token exchange,
    timeouts and abandonment.
    """


__all__ = [
    "AuthError",
    "ValidationError",
    "ConfigurationError",
    "StorageError",
    "CredentialStoreCorrupt",
    "AuthTransientFailure",
    "AuthRejected",
    "LoginFlowError",
]
