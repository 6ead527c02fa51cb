"""Backend identities and the resolution input snapshot.

A ``BackendIdentity`` names one source of language-model inference. It is
resolved once per process and never changes afterwards, so every type in
this module is frozen.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

DEFAULT_OLLAMA_URL = "http://localhost:11434"

# 100 ms keeps a failed probe invisible at startup
DEFAULT_PROBE_TIMEOUT = 0.1

KNOWN_VENDORS = ("openai", "anthropic")

_VENDOR_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._-]*$")


class BackendKind(str, Enum):
    """Closed set of backend kinds."""

    REMOTE_MANAGED = "remote-managed"
    LOCAL_OPENAI_COMPATIBLE = "local-openai-compatible"
    LOCAL_OLLAMA = "local-ollama"
    DIRECT_VENDOR = "vendor"
    PRIVATE_INFERENCE = "private-inference"

    @property
    def is_local(self) -> bool:
        return self in (BackendKind.LOCAL_OPENAI_COMPATIBLE, BackendKind.LOCAL_OLLAMA)


@dataclass(frozen=True)
class BackendIdentity:
    """A resolved backend.

    Attributes:
        kind: Which kind of backend this is
        vendor: Vendor name, set only for ``DIRECT_VENDOR``
        base_url: Explicit endpoint, when one was configured or detected

    Raises:
        ValueError: If ``vendor`` does not match ``kind``
    """

    kind: BackendKind
    vendor: str | None = None
    base_url: str | None = None

    def __post_init__(self) -> None:
        if self.kind is BackendKind.DIRECT_VENDOR:
            if not self.vendor:
                raise ValueError("A direct vendor backend requires a vendor name")
            vendor = self.vendor.strip().lower()
            if not _VENDOR_PATTERN.match(vendor):
                raise ValueError(f"Invalid vendor name '{self.vendor}'")
            object.__setattr__(self, "vendor", vendor)
        elif self.vendor is not None:
            raise ValueError(f"Backend kind '{self.kind.value}' does not take a vendor name")
        if self.base_url is not None:
            object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def remote_managed(cls) -> BackendIdentity:
        return cls(BackendKind.REMOTE_MANAGED)

    @classmethod
    def local_ollama(cls, base_url: str | None = None) -> BackendIdentity:
        return cls(BackendKind.LOCAL_OLLAMA, base_url=base_url)

    @classmethod
    def local_openai_compatible(cls, base_url: str | None = None) -> BackendIdentity:
        return cls(BackendKind.LOCAL_OPENAI_COMPATIBLE, base_url=base_url)

    @classmethod
    def direct_vendor(cls, name: str) -> BackendIdentity:
        return cls(BackendKind.DIRECT_VENDOR, vendor=name)

    @classmethod
    def private_inference(cls) -> BackendIdentity:
        return cls(BackendKind.PRIVATE_INFERENCE)

    @property
    def family(self) -> str:
        """Credential family name; one credential record exists per family."""
        if self.kind is BackendKind.DIRECT_VENDOR:
            return self.vendor  # type: ignore[return-value]
        return self.kind.value

    @property
    def is_local(self) -> bool:
        return self.kind.is_local

    def with_base_url(self, base_url: str | None) -> BackendIdentity:
        if base_url is None:
            return self
        return BackendIdentity(self.kind, vendor=self.vendor, base_url=base_url)

    def __str__(self) -> str:
        return self.family


# Selector values accepted by LLM_BACKEND, including the historical spellings
_SELECTOR_ALIASES: dict[str, BackendKind] = {
    "remote-managed": BackendKind.REMOTE_MANAGED,
    "remote": BackendKind.REMOTE_MANAGED,
    "nearai": BackendKind.REMOTE_MANAGED,
    "local-openai-compatible": BackendKind.LOCAL_OPENAI_COMPATIBLE,
    "openai-compatible": BackendKind.LOCAL_OPENAI_COMPATIBLE,
    "openai_compatible": BackendKind.LOCAL_OPENAI_COMPATIBLE,
    "local-ollama": BackendKind.LOCAL_OLLAMA,
    "ollama": BackendKind.LOCAL_OLLAMA,
    "private-inference": BackendKind.PRIVATE_INFERENCE,
    "tinfoil": BackendKind.PRIVATE_INFERENCE,
}


def parse_backend_selector(value: str) -> BackendIdentity:
    """Parse an ``LLM_BACKEND`` value into an identity.

    Accepts the canonical names, the historical aliases, a bare known
    vendor name (``openai``, ``anthropic``) or ``vendor:<name>``.

    Raises:
        ValueError: If the selector is empty or unknown
    """
    selector = value.strip().lower()
    if not selector:
        raise ValueError("Backend selector is empty")

    if selector in _SELECTOR_ALIASES:
        return BackendIdentity(_SELECTOR_ALIASES[selector])

    if selector.startswith("vendor:"):
        return BackendIdentity.direct_vendor(selector.split(":", 1)[1])

    if selector in KNOWN_VENDORS:
        return BackendIdentity.direct_vendor(selector)

    valid = sorted(set(_SELECTOR_ALIASES) | set(KNOWN_VENDORS))
    raise ValueError(
        f"Unknown backend '{value}'. Valid values: {', '.join(valid)}, or vendor:<name>"
    )


@dataclass(frozen=True)
class LocalCandidate:
    """A local inference endpoint worth probing."""

    name: str
    base_url: str
    kind: BackendKind = BackendKind.LOCAL_OPENAI_COMPATIBLE


# Default ports of the local servers the setup tooling knows about
LOCAL_PRESETS: tuple[LocalCandidate, ...] = (
    LocalCandidate("lmstudio", "http://localhost:1234/v1"),
    LocalCandidate("vllm", "http://localhost:8000/v1"),
    LocalCandidate("litellm", "http://localhost:4000/v1"),
)


@dataclass(frozen=True)
class ResolutionInput:
    """Startup snapshot consumed by the resolver.

    Attributes:
        backend_override: Explicitly configured backend, if any
        base_url_override: Explicitly configured OpenAI-compatible base URL
        local_service_url: Local inference URL to probe (default Ollama port)
        probe_timeout: Shared probe budget in seconds
        extra_candidates: Additional local endpoints probed concurrently
    """

    backend_override: BackendIdentity | None = None
    base_url_override: str | None = None
    local_service_url: str | None = None
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    extra_candidates: tuple[LocalCandidate, ...] = ()

    def __post_init__(self) -> None:
        if self.probe_timeout <= 0:
            raise ValueError(f"probe_timeout must be positive (got {self.probe_timeout!r})")

    @property
    def local_probe_url(self) -> str:
        return (self.local_service_url or DEFAULT_OLLAMA_URL).rstrip("/")

    def probe_candidates(self) -> tuple[LocalCandidate, ...]:
        """Endpoints probed by step 3 of resolution, Ollama first."""
        ollama = LocalCandidate("ollama", self.local_probe_url, BackendKind.LOCAL_OLLAMA)
        return (ollama, *self.extra_candidates)
