"""Type coercion and validation utilities for configuration loading.

Errors are raised with clear messages naming the variable, so users can
fix configuration issues without reading code. Secret values are never
echoed.
"""

import os
from typing import Any

from llm_resolver.core.config.schema import ConfigSchema, EnvVarSpec
from llm_resolver.core.error_types import ErrorType


class ConfigError(Exception):
    """Configuration validation error.

    Attributes:
        env_var: The environment variable name
        value: The raw value that failed validation
        message: Human-readable error message
    """

    error_type = ErrorType.CONFIG_ERROR

    def __init__(self, env_var: str, value: str | None, message: str) -> None:
        self.env_var = env_var
        self.value = value
        self.message = message
        super().__init__(f"{env_var}={value}: {message}")


def _parse_bool(value: str) -> bool:
    """True for "true", "1", "yes" or "on" (case-insensitive)."""
    return value.strip().lower() in ("true", "1", "yes", "on")


def load_env_var(spec: EnvVarSpec) -> Any:
    """Load and validate a single environment variable.

    An unset or blank variable yields the declared default.

    Raises:
        ConfigError: If validation fails or type conversion is impossible
    """
    raw_value = os.environ.get(spec.name)

    if raw_value is None or not raw_value.strip():
        return spec.default

    shown = "<redacted>" if spec.secret else raw_value

    try:
        if spec.coerce is not None:
            value = spec.coerce(raw_value)
        elif spec.type_hint is bool:
            value = _parse_bool(raw_value)
        elif spec.type_hint is int:
            value = int(raw_value)
        elif spec.type_hint is float:
            value = float(raw_value)
        else:
            value = raw_value.strip()
    except (ValueError, TypeError) as e:
        # Conversion messages quote the raw value
        detail = "" if spec.secret else f": {e}"
        raise ConfigError(
            spec.name,
            shown,
            f"Cannot convert to {spec.type_hint.__name__}{detail}",
        ) from e

    if spec.validator is not None:
        try:
            valid = spec.validator(value)
        except (TypeError, AttributeError) as e:
            detail = "" if spec.secret else f": {e}"
            raise ConfigError(spec.name, shown, f"Validation error{detail}") from e
        if not valid:
            raise ConfigError(spec.name, shown, f"Invalid value. {spec.description}")

    return value


def load_all_specs() -> dict[str, Any]:
    """Load all environment variables according to schema.

    Values that failed validation are ConfigError instances, so every
    problem can be reported at once.
    """
    result: dict[str, Any] = {}
    for name, spec in ConfigSchema.all_specs().items():
        try:
            result[name] = load_env_var(spec)
        except ConfigError as e:
            result[name] = e
    return result


def validate_all() -> list[ConfigError]:
    """Validate all environment variables and return any errors.

    Example:
        errors = validate_all()
        if errors:
            for error in errors:
                print(f"Configuration error: {error}")
            sys.exit(1)
    """
    return [value for value in load_all_specs().values() if isinstance(value, ConfigError)]
