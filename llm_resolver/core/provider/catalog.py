"""Provider profiles: how to talk to each backend family."""

from __future__ import annotations

from dataclasses import dataclass, replace

from llm_resolver.core.auth.constants import RemoteService
from llm_resolver.core.backend import DEFAULT_OLLAMA_URL, BackendIdentity, BackendKind

ANTHROPIC_VERSION = "2023-06-01"


@dataclass(frozen=True)
class BackendProfile:
    """Static description of a backend family.

    Attributes:
        family: Credential family name (matches ``BackendIdentity.family``)
        display_name: Name shown to users
        base_url: Default API base URL (None when it must be configured)
        api_key_env: Environment variable holding the API key
        discovery_path: Path listing available models, relative to base_url
        discovery_format: "openai" ({"data": [{"id": ...}]}) or
            "ollama" ({"models": [{"name": ...}]})
        auth_style: "bearer", "x-api-key" or "none"
        api_format: Wire format of the inference API ("openai" or "anthropic")
        requires_credential: False when the backend works without a key
    """

    family: str
    display_name: str
    base_url: str | None
    api_key_env: str | None
    discovery_path: str | None = "/models"
    discovery_format: str = "openai"
    auth_style: str = "bearer"
    api_format: str = "openai"
    requires_credential: bool = True

    def __post_init__(self) -> None:
        if self.discovery_format not in ("openai", "ollama"):
            raise ValueError(f"Invalid discovery format '{self.discovery_format}'")
        if self.auth_style not in ("bearer", "x-api-key", "none"):
            raise ValueError(f"Invalid auth style '{self.auth_style}'")
        if self.api_format not in ("openai", "anthropic"):
            raise ValueError(f"Invalid API format '{self.api_format}'")


PROFILES: dict[str, BackendProfile] = {
    profile.family: profile
    for profile in (
        BackendProfile(
            family=BackendKind.REMOTE_MANAGED.value,
            display_name="NEAR AI Cloud",
            base_url=RemoteService.API_BASE_URL,
            api_key_env="NEARAI_API_KEY",
        ),
        BackendProfile(
            family=BackendKind.LOCAL_OLLAMA.value,
            display_name="Ollama",
            base_url=DEFAULT_OLLAMA_URL,
            api_key_env=None,
            discovery_path="/api/tags",
            discovery_format="ollama",
            auth_style="none",
            requires_credential=False,
        ),
        BackendProfile(
            family=BackendKind.LOCAL_OPENAI_COMPATIBLE.value,
            display_name="OpenAI-compatible server",
            base_url=None,
            api_key_env="LLM_API_KEY",
            requires_credential=False,
        ),
        BackendProfile(
            family=BackendKind.PRIVATE_INFERENCE.value,
            display_name="Tinfoil private inference",
            base_url="https://inference.tinfoil.sh/v1",
            api_key_env="TINFOIL_API_KEY",
        ),
        BackendProfile(
            family="openai",
            display_name="OpenAI",
            base_url="https://api.openai.com/v1",
            api_key_env="OPENAI_API_KEY",
        ),
        BackendProfile(
            family="anthropic",
            display_name="Anthropic",
            base_url="https://api.anthropic.com/v1",
            api_key_env="ANTHROPIC_API_KEY",
            auth_style="x-api-key",
            api_format="anthropic",
        ),
    )
}


def profile_for(identity: BackendIdentity) -> BackendProfile | None:
    """Profile for ``identity``, or None if the family is unknown.

    An explicit base URL on the identity replaces the profile default.
    """
    profile = PROFILES.get(identity.family)
    if profile is None:
        return None
    if identity.base_url:
        return replace(profile, base_url=identity.base_url)
    return profile


def api_key_env_for(identity: BackendIdentity) -> str:
    """Environment variable holding the API key for ``identity``.

    Vendors without a profile follow the ``<VENDOR>_API_KEY`` convention.
    """
    profile = PROFILES.get(identity.family)
    if profile is not None and profile.api_key_env:
        return profile.api_key_env
    return f"{identity.family.upper().replace('-', '_')}_API_KEY"


__all__ = [
    "ANTHROPIC_VERSION",
    "BackendProfile",
    "PROFILES",
    "profile_for",
    "api_key_env_for",
]
