"""Typed settings loaded from the environment.

``Settings.load()`` reads every variable through the schema once, at
startup, and produces the immutable values the pipeline consumes. Nothing
downstream reads the environment directly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from llm_resolver.core.auth.login import LoginConfig
from llm_resolver.core.backend import (
    LOCAL_PRESETS,
    BackendIdentity,
    ResolutionInput,
    parse_backend_selector,
)
from llm_resolver.core.config.schema import ConfigSchema
from llm_resolver.core.config.validation import ConfigError, load_env_var
from llm_resolver.core.provider.catalog import api_key_env_for, profile_for

_logger = logging.getLogger(__name__)


def user_env_file(home_dir: Path | None = None) -> Path:
    home = home_dir or Path(load_env_var(ConfigSchema.LLM_RESOLVER_HOME)).expanduser()
    return home / ".env"


def load_user_env(home_dir: Path | None = None) -> bool:
    """Load ``<home>/.env`` without overriding variables already set.

    Returns:
        True if the file existed and was loaded
    """
    path = user_env_file(home_dir)
    if not path.is_file():
        return False
    _logger.debug("Loading settings from %s", path)
    return load_dotenv(path, override=False)


def _parse_selector(spec_name: str, value: str | None) -> BackendIdentity | None:
    if value is None:
        return None
    try:
        identity = parse_backend_selector(value)
    except ValueError as e:
        raise ConfigError(spec_name, value, str(e)) from e
    if profile_for(identity) is None:
        raise ConfigError(spec_name, value, f"No provider profile for backend '{identity}'")
    return identity


@dataclass(frozen=True)
class Settings:
    """Resolver settings.

    Attributes:
        backend: Explicit backend override (LLM_BACKEND)
        base_url: Explicit OpenAI-compatible base URL (LLM_BASE_URL)
        ollama_url: Local inference URL to probe (OLLAMA_BASE_URL)
        probe_timeout_ms: Probe budget (LLM_PROBE_TIMEOUT_MS)
        probe_presets: Probe LM Studio / vLLM / LiteLLM too
        fallback_backend: Secondary backend (LLM_FALLBACK_BACKEND)
        no_onboard: Headless mode (LLM_NO_ONBOARD)
        remote_base_url: Remote managed inference API
        remote_auth_url: Remote managed authorization server
        login_idp: Identity provider for browser login
        login_callback_port: Callback listener port
        login_timeout: Seconds to wait for browser login
        discovery_timeout: Model discovery budget in seconds
        home_dir: Credential and user config directory
        log_level: Logging level name
    """

    backend: BackendIdentity | None
    base_url: str | None
    ollama_url: str
    probe_timeout_ms: int
    probe_presets: bool
    fallback_backend: BackendIdentity | None
    no_onboard: bool
    remote_base_url: str
    remote_auth_url: str
    login_idp: str
    login_callback_port: int
    login_timeout: int
    discovery_timeout: float
    home_dir: Path
    log_level: str

    @classmethod
    def load(cls, *, user_env: bool = True) -> Settings:
        """Load settings from the environment.

        Args:
            user_env: Also read ``~/.llm-resolver/.env`` (never overrides
                variables that are already set)

        Raises:
            ConfigError: If any variable fails validation
        """
        if user_env:
            load_user_env()

        return cls(
            backend=_parse_selector("LLM_BACKEND", load_env_var(ConfigSchema.LLM_BACKEND)),
            base_url=load_env_var(ConfigSchema.LLM_BASE_URL),
            ollama_url=load_env_var(ConfigSchema.OLLAMA_BASE_URL),
            probe_timeout_ms=load_env_var(ConfigSchema.LLM_PROBE_TIMEOUT_MS),
            probe_presets=load_env_var(ConfigSchema.LLM_PROBE_PRESETS),
            fallback_backend=_parse_selector(
                "LLM_FALLBACK_BACKEND", load_env_var(ConfigSchema.LLM_FALLBACK_BACKEND)
            ),
            no_onboard=load_env_var(ConfigSchema.LLM_NO_ONBOARD),
            remote_base_url=load_env_var(ConfigSchema.REMOTE_BASE_URL),
            remote_auth_url=load_env_var(ConfigSchema.REMOTE_AUTH_URL),
            login_idp=load_env_var(ConfigSchema.LOGIN_IDP),
            login_callback_port=load_env_var(ConfigSchema.LOGIN_CALLBACK_PORT),
            login_timeout=load_env_var(ConfigSchema.LOGIN_TIMEOUT_SECONDS),
            discovery_timeout=load_env_var(ConfigSchema.DISCOVERY_TIMEOUT_SECONDS),
            home_dir=Path(load_env_var(ConfigSchema.LLM_RESOLVER_HOME)).expanduser(),
            log_level=load_env_var(ConfigSchema.LOG_LEVEL).upper(),
        )

    @property
    def probe_timeout(self) -> float:
        return self.probe_timeout_ms / 1000

    def resolution_input(self) -> ResolutionInput:
        """Immutable snapshot consumed by the resolver."""
        return ResolutionInput(
            backend_override=self.backend,
            base_url_override=self.base_url,
            local_service_url=self.ollama_url,
            probe_timeout=self.probe_timeout,
            extra_candidates=LOCAL_PRESETS if self.probe_presets else (),
        )

    def api_key_for(self, identity: BackendIdentity) -> str | None:
        """API key configured in the environment for ``identity``, if any."""
        env_var = api_key_env_for(identity)
        spec = ConfigSchema.get_spec(env_var)
        if spec is not None:
            return load_env_var(spec)
        value = os.environ.get(env_var, "").strip()
        return value or None

    def login_config(self, *, open_browser: bool = True) -> LoginConfig:
        return LoginConfig(
            auth_url=self.remote_auth_url,
            identity_provider=self.login_idp,
            port=self.login_callback_port,
            timeout=self.login_timeout,
            open_browser=open_browser,
        )


__all__ = ["Settings", "load_user_env", "user_env_file"]
