"""Provider construction for authenticated backends."""

from .builder import ProviderChainBuilder, auth_headers
from .catalog import PROFILES, BackendProfile, api_key_env_for, profile_for
from .chain import DEGRADED_STATIC, ChainEntry, ProviderChain, ProviderHandle
from .discovery import ModelDiscovery
from .static_catalog import ModelInfo, static_models

__all__ = [
    "ProviderChainBuilder",
    "auth_headers",
    "BackendProfile",
    "PROFILES",
    "profile_for",
    "api_key_env_for",
    "ProviderChain",
    "ChainEntry",
    "ProviderHandle",
    "DEGRADED_STATIC",
    "ModelDiscovery",
    "ModelInfo",
    "static_models",
]
