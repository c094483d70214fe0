"""vcsync configuration.

This module provides loading, validation, and typed access to vcsync
configuration values.

Example:
    >>> from vcsync.config import Config
    >>> config = Config.load()
    >>> config.git.default_branch
    'main'
"""

from vcsync.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._config import Config, discover_config_file
from ._defaults import DEFAULT_CONFIG
from ._loader import deep_merge, parse_env_vars, parse_string_value, read_toml_file, set_nested_key
from ._models import (
    GitConfig,
    IdentityConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    ProviderConfig,
    StorageConfig,
)
from ._validation import ValidationIssue, validate_config

__all__ = [
    "DEFAULT_CONFIG",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "GitConfig",
    "IdentityConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "ProviderConfig",
    "StorageConfig",
    "ValidationIssue",
    "deep_merge",
    "discover_config_file",
    "parse_env_vars",
    "parse_string_value",
    "read_toml_file",
    "set_nested_key",
    "validate_config",
]
