"""Provider handles and the ordered chain handed to the application."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from llm_resolver.core.backend import BackendIdentity

from .static_catalog import ModelInfo

DEGRADED_STATIC = "degraded: static"


@dataclass(frozen=True)
class ProviderHandle:
    """Everything the application needs to call one backend.

    Attributes:
        identity: Backend this handle talks to
        display_name: Name shown to users
        base_url: API base URL
        headers: Authentication headers (excluded from repr)
        api_format: Wire format ("openai" or "anthropic")
        models: Models offered, with pricing where known
    """

    identity: BackendIdentity
    display_name: str
    base_url: str
    headers: dict[str, str] = field(repr=False, hash=False, compare=False)
    api_format: str = "openai"
    models: tuple[ModelInfo, ...] = ()

    @property
    def model_ids(self) -> tuple[str, ...]:
        return tuple(model.id for model in self.models)


@dataclass(frozen=True)
class ChainEntry:
    """A handle plus its degradation note (None when fully live)."""

    handle: ProviderHandle
    note: str | None = None

    @property
    def degraded(self) -> bool:
        return self.note is not None


@dataclass(frozen=True)
class ProviderChain:
    """Ordered providers, primary first."""

    entries: tuple[ChainEntry, ...]

    def __post_init__(self) -> None:
        if not self.entries:
            raise ValueError("A provider chain needs at least one entry")

    @property
    def primary(self) -> ProviderHandle:
        return self.entries[0].handle

    @property
    def fallbacks(self) -> tuple[ProviderHandle, ...]:
        return tuple(entry.handle for entry in self.entries[1:])

    @property
    def degraded(self) -> bool:
        return any(entry.degraded for entry in self.entries)

    def __iter__(self) -> Iterator[ChainEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


__all__ = ["DEGRADED_STATIC", "ProviderHandle", "ChainEntry", "ProviderChain"]
