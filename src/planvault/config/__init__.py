"""Planvault configuration.

This module provides the public API for planvault configuration management,
including loading, validation, and typed access to configuration values.

Example:
    >>> from planvault.config import Config
    >>> config = Config.load(repository=Path("~/planner"))
    >>> config.logging.level
    <LogLevel.INFO: 'info'>
"""

# Re-export exceptions from main exceptions module
from planvault.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG
from ._discovery import (
    discover_sources,
    get_repository_config_path,
    get_user_config_path,
)
from ._load import safe_load_config
from ._loader import (
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    AuthorSection,
    Config,
    ConfigSource,
    ConfigSourceName,
    LogFormat,
    LoggingConfig,
    LogLevel,
)

__all__ = [
    "DEFAULT_CONFIG",
    "AuthorSection",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigSource",
    "ConfigSourceName",
    "ConfigValidationError",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "deep_merge",
    "discover_sources",
    "get_repository_config_path",
    "get_user_config_path",
    "parse_env_vars",
    "parse_string_value",
    "read_toml_file",
    "safe_load_config",
    "set_nested_key",
]
