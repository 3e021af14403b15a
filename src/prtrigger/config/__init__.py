"""Configuration loading, validation and schema definitions.

Usage:
    from prtrigger.config import load_config

    config = load_config()  # Auto-discovers config file
    config = load_config("/path/to/config.yaml")  # Explicit path
"""

from prtrigger.config.loader import (
    ConfigError,
    ConfigNotFoundError,
    ConfigValidationError,
    EnvironmentVariableError,
    discover_config_path,
    expand_env_vars,
    load_config,
)
from prtrigger.config.schema import (
    Config,
    DispatchConfig,
    GitHubConfig,
    JobConfig,
    OwnerConfig,
    SourceConfig,
    StateConfig,
)

__all__ = [
    "Config",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigValidationError",
    "DispatchConfig",
    "EnvironmentVariableError",
    "GitHubConfig",
    "JobConfig",
    "OwnerConfig",
    "SourceConfig",
    "StateConfig",
    "discover_config_path",
    "expand_env_vars",
    "load_config",
]
