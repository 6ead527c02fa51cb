"""Environment configuration."""

from llm_resolver.core.config.schema import ConfigSchema, EnvVarSpec
from llm_resolver.core.config.settings import Settings, load_user_env, user_env_file
from llm_resolver.core.config.validation import ConfigError, load_env_var, validate_all

__all__ = [
    "ConfigSchema",
    "EnvVarSpec",
    "ConfigError",
    "load_env_var",
    "validate_all",
    "Settings",
    "load_user_env",
    "user_env_file",
]
