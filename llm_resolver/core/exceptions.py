"""Exceptions raised by the startup pipeline outside the auth package."""

from __future__ import annotations

from typing import TYPE_CHECKING

from llm_resolver.core.error_types import ErrorType, FailureReason

if TYPE_CHECKING:
    from llm_resolver.core.backend import BackendIdentity


class ResolverError(Exception):
    """Base exception for resolution, provider and startup errors."""

    error_type: ErrorType | None = None


class ProviderBuildError(ResolverError):
    """A provider handle cannot be constructed.

    Raised for unusable credentials (a backend that needs one was handed
    NoCredential) and for identities without a provider profile.
    """

    def __init__(self, message: str, error_type: ErrorType | None = None) -> None:
        super().__init__(message)
        if error_type is not None:
            self.error_type = error_type


class DiscoveryUnavailable(ResolverError):
    """Model discovery failed; callers fall back to static data."""

    error_type = ErrorType.DISCOVERY_UNAVAILABLE


class StartupError(ResolverError):
    """Startup halted before a provider chain was built.

    Attributes:
        backend: Backend that could not be made ready
        reason: Why authentication failed
        remediation: What the user should do about it
    """

    def __init__(
        self,
        backend: BackendIdentity,
        reason: FailureReason,
        detail: str | None = None,
    ) -> None:
        self.backend = backend
        self.reason = reason
        self.detail = detail
        self.remediation = reason.remediation.format(backend=backend.family)
        message = f"Cannot start with backend '{backend}': {reason.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


__all__ = [
    "ResolverError",
    "ProviderBuildError",
    "DiscoveryUnavailable",
    "StartupError",
]
