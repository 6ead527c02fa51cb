"""Declarative schema for environment variable configuration.

This module is the single source of truth for every environment variable
the resolver reads, including type coercion, validation and the generated
documentation shown by ``llmr config --docs``.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from llm_resolver.core.auth.constants import LoginDefaults, RemoteService
from llm_resolver.core.backend import DEFAULT_OLLAMA_URL


def _is_http_url(value: str) -> bool:
    return value.startswith(("http://", "https://")) and len(value) > len("https://")


@dataclass(frozen=True)
class EnvVarSpec:
    """Specification for a single environment variable.

    Attributes:
        name: Environment variable name (e.g., "LLM_BACKEND")
        default: Default value if env var not set
        type_hint: Type for validation (int, str, float, bool)
        description: Human-readable description for docs
        validator: Optional custom validation function
        coerce: Optional function to convert string to target type
        secret: Never echo the value in errors or ``llmr config`` output
    """

    name: str
    default: Any
    type_hint: type
    description: str
    validator: Callable[[Any], bool] | None = None
    coerce: Callable[[str], Any] | None = None
    secret: bool = False


class ConfigSchema:
    """Registry of all configuration environment variables."""

    # === Resolution ===

    LLM_BACKEND = EnvVarSpec(
        name="LLM_BACKEND",
        default=None,
        type_hint=str,
        description=(
            "Explicit backend: remote-managed, local-openai-compatible, local-ollama, "
            "private-inference, openai, anthropic or vendor:<name>. Never overridden "
            "by auto-detection"
        ),
    )

    LLM_BASE_URL = EnvVarSpec(
        name="LLM_BASE_URL",
        default=None,
        type_hint=str,
        description="Base URL of an OpenAI-compatible server; selects it without probing",
        validator=_is_http_url,
    )

    OLLAMA_BASE_URL = EnvVarSpec(
        name="OLLAMA_BASE_URL",
        default=DEFAULT_OLLAMA_URL,
        type_hint=str,
        description="Local inference server probed at startup",
        validator=_is_http_url,
    )

    LLM_PROBE_TIMEOUT_MS = EnvVarSpec(
        name="LLM_PROBE_TIMEOUT_MS",
        default=100,
        type_hint=int,
        description="Shared budget for local probes, in milliseconds",
        validator=lambda x: 1 <= x <= 10000,
    )

    LLM_PROBE_PRESETS = EnvVarSpec(
        name="LLM_PROBE_PRESETS",
        default=False,
        type_hint=bool,
        description="Also probe LM Studio (1234), vLLM (8000) and LiteLLM (4000)",
    )

    LLM_FALLBACK_BACKEND = EnvVarSpec(
        name="LLM_FALLBACK_BACKEND",
        default=None,
        type_hint=str,
        description="Secondary backend added to the provider chain when it authenticates",
    )

    # === Authentication ===

    LLM_NO_ONBOARD = EnvVarSpec(
        name="LLM_NO_ONBOARD",
        default=False,
        type_hint=bool,
        description="Headless mode: fail instead of starting an interactive login",
    )

    NEARAI_API_KEY = EnvVarSpec(
        name="NEARAI_API_KEY",
        default=None,
        type_hint=str,
        description="API key for the remote managed service (skips browser login)",
        secret=True,
    )

    OPENAI_API_KEY = EnvVarSpec(
        name="OPENAI_API_KEY",
        default=None,
        type_hint=str,
        description="API key for OpenAI",
        secret=True,
    )

    ANTHROPIC_API_KEY = EnvVarSpec(
        name="ANTHROPIC_API_KEY",
        default=None,
        type_hint=str,
        description="API key for Anthropic",
        secret=True,
    )

    TINFOIL_API_KEY = EnvVarSpec(
        name="TINFOIL_API_KEY",
        default=None,
        type_hint=str,
        description="API key for the private inference provider",
        secret=True,
    )

    LLM_API_KEY = EnvVarSpec(
        name="LLM_API_KEY",
        default=None,
        type_hint=str,
        description="Optional API key for a local OpenAI-compatible server",
        secret=True,
    )

    REMOTE_BASE_URL = EnvVarSpec(
        name="REMOTE_BASE_URL",
        default=RemoteService.API_BASE_URL,
        type_hint=str,
        description="Inference API of the remote managed service",
        validator=_is_http_url,
    )

    REMOTE_AUTH_URL = EnvVarSpec(
        name="REMOTE_AUTH_URL",
        default=RemoteService.AUTH_BASE_URL,
        type_hint=str,
        description="Authorization server of the remote managed service",
        validator=_is_http_url,
    )

    # === Login ===

    LOGIN_IDP = EnvVarSpec(
        name="LOGIN_IDP",
        default=RemoteService.DEFAULT_IDENTITY_PROVIDER,
        type_hint=str,
        description="Identity provider for browser login (github, google)",
        coerce=lambda x: x.strip().lower(),
        validator=lambda x: x in RemoteService.IDENTITY_PROVIDERS,
    )

    LOGIN_CALLBACK_PORT = EnvVarSpec(
        name="LOGIN_CALLBACK_PORT",
        default=LoginDefaults.CALLBACK_PORT,
        type_hint=int,
        description="Local port receiving the login callback",
        validator=lambda x: 1024 <= x <= 65535,
    )

    LOGIN_TIMEOUT_SECONDS = EnvVarSpec(
        name="LOGIN_TIMEOUT_SECONDS",
        default=LoginDefaults.CALLBACK_TIMEOUT,
        type_hint=int,
        description="Seconds to wait for the browser login to complete",
        validator=lambda x: 1 <= x <= 3600,
    )

    # === Discovery ===

    DISCOVERY_TIMEOUT_SECONDS = EnvVarSpec(
        name="DISCOVERY_TIMEOUT_SECONDS",
        default=2.0,
        type_hint=float,
        description="Budget for fetching live model lists before using bundled data",
        validator=lambda x: x > 0,
    )

    # === General ===

    LLM_RESOLVER_HOME = EnvVarSpec(
        name="LLM_RESOLVER_HOME",
        default="~/.llm-resolver",
        type_hint=str,
        description="Directory holding credentials and the user .env file",
    )

    LOG_LEVEL = EnvVarSpec(
        name="LOG_LEVEL",
        default="INFO",
        type_hint=str,
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        validator=lambda x: x.upper() in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )

    @classmethod
    def all_specs(cls) -> dict[str, EnvVarSpec]:
        """Get all environment variable specifications.

        Returns:
            Dictionary mapping spec names to EnvVarSpec objects
        """
        return {
            name: getattr(cls, name)
            for name in dir(cls)
            if isinstance(getattr(cls, name), EnvVarSpec)
        }

    @classmethod
    def get_spec(cls, name: str) -> EnvVarSpec | None:
        """Get specification for a specific env var by name."""
        for spec in cls.all_specs().values():
            if spec.name == name:
                return spec
        return None

    @classmethod
    def generate_markdown_docs(cls) -> str:
        """Generate Markdown documentation for all environment variables."""
        lines = [
            "# Configuration Options\n",
            "This document is auto-generated from `ConfigSchema`.\n",
            "## Environment Variables\n",
        ]

        for _name, spec in sorted(cls.all_specs().items()):
            default_repr = f"`{spec.default}`" if spec.default is not None else "None"
            lines.extend(
                [
                    f"### `{spec.name}`\n",
                    f"- **Type**: `{spec.type_hint.__name__}`",
                    f"- **Default**: {default_repr}",
                    f"- **Description**: {spec.description}\n",
                ]
            )

        return "\n".join(lines)
