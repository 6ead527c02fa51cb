"""Assemble the provider chain once authentication has succeeded."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import replace

from llm_resolver.core.auth.credentials import ApiKey, Credential, NoCredential, SessionToken
from llm_resolver.core.backend import BackendIdentity, BackendKind
from llm_resolver.core.error_types import ErrorType
from llm_resolver.core.exceptions import DiscoveryUnavailable, ProviderBuildError

from .catalog import ANTHROPIC_VERSION, BackendProfile, profile_for
from .chain import DEGRADED_STATIC, ChainEntry, ProviderChain, ProviderHandle
from .discovery import ModelDiscovery
from .static_catalog import static_models

_logger = logging.getLogger(__name__)


def auth_headers(profile: BackendProfile, credential: Credential) -> dict[str, str]:
    """HTTP headers that authenticate requests to ``profile``."""
    if isinstance(credential, ApiKey):
        secret = credential.secret
    elif isinstance(credential, SessionToken):
        secret = credential.token
    else:
        return {}

    if profile.auth_style == "x-api-key":
        return {"x-api-key": secret, "anthropic-version": ANTHROPIC_VERSION}
    if profile.auth_style == "bearer":
        return {"Authorization": f"Bearer {secret}"}
    # Local servers ignore keys they do not expect
    return {}


class ProviderChainBuilder:
    """Builds provider handles for authenticated backends.

    Responsibilities:
    - Map an identity to its provider profile and base URL
    - Turn the credential into authentication headers
    - Run model discovery concurrently for every entry, falling back to
      the bundled table (and marking the entry degraded) on failure

    Example:
        >>> builder = ProviderChainBuilder()
        >>> chain = await builder.build(identity, credential)
        >>> chain.primary.base_url
        'http://localhost:11434'
    """

    def __init__(
        self,
        discovery: ModelDiscovery | None = None,
        remote_base_url: str | None = None,
    ) -> None:
        self.discovery = discovery or ModelDiscovery()
        self.remote_base_url = remote_base_url

    def handle_for(self, identity: BackendIdentity, credential: Credential) -> ProviderHandle:
        """Build a handle without discovery (bundled models only).

        Raises:
            ProviderBuildError: For an unknown identity, a missing base URL,
                or a backend that needs a credential but got none
        """
        profile = self._profile(identity)

        if profile.requires_credential and isinstance(credential, NoCredential):
            raise ProviderBuildError(
                f"Backend '{identity}' requires a credential but none was provided"
            )

        return ProviderHandle(
            identity=identity,
            display_name=profile.display_name,
            base_url=profile.base_url.rstrip("/"),  # type: ignore[union-attr]
            headers=auth_headers(profile, credential),
            api_format=profile.api_format,
            models=static_models(profile.family),
        )

    async def build(
        self,
        identity: BackendIdentity,
        credential: Credential,
        fallbacks: Sequence[tuple[BackendIdentity, Credential]] = (),
    ) -> ProviderChain:
        """Build the chain: primary first, then ``fallbacks`` in order.

        Discovery for all entries runs concurrently, each bounded by the
        discovery timeout, so the call costs O(timeout) at most.

        Raises:
            ProviderBuildError: If any handle cannot be constructed
        """
        handles = [self.handle_for(identity, credential)]
        handles.extend(self.handle_for(fb_identity, fb_cred) for fb_identity, fb_cred in fallbacks)

        entries = await asyncio.gather(*(self._discover(handle) for handle in handles))
        chain = ProviderChain(tuple(entries))

        for entry in chain:
            if entry.degraded:
                _logger.warning(
                    "Using bundled model list for %s (%s)", entry.handle.identity, entry.note
                )
        return chain

    def _profile(self, identity: BackendIdentity) -> BackendProfile:
        profile = profile_for(identity)
        if profile is None:
            raise ProviderBuildError(
                f"No provider profile for backend '{identity}'",
                error_type=ErrorType.UNKNOWN_IDENTITY,
            )
        if (
            identity.kind is BackendKind.REMOTE_MANAGED
            and identity.base_url is None
            and self.remote_base_url
        ):
            profile = replace(profile, base_url=self.remote_base_url)
        if not profile.base_url:
            raise ProviderBuildError(
                f"Backend '{identity}' needs a base URL (set LLM_BASE_URL)",
                error_type=ErrorType.CONFIG_ERROR,
            )
        return profile

    async def _discover(self, handle: ProviderHandle) -> ChainEntry:
        profile = self._profile(handle.identity)
        try:
            models = await self.discovery.discover(profile, handle.headers)
        except DiscoveryUnavailable as e:
            _logger.debug("Discovery for %s unavailable: %s", handle.identity, e)
            return ChainEntry(handle, note=DEGRADED_STATIC)
        return ChainEntry(replace(handle, models=models))


__all__ = ["ProviderChainBuilder", "auth_headers"]
