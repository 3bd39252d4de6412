"""Configuration models.

This module provides Pydantic models for planvault configuration sections
and the main Config container class.
"""

from planvault.config._models._common import (
    ConfigSource,
    ConfigSourceName,
    LogFormat,
    LogLevel,
)
from planvault.config._models._config import Config
from planvault.config._models._sections import AuthorSection, LoggingConfig

__all__ = [
    "AuthorSection",
    "Config",
    "ConfigSource",
    "ConfigSourceName",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
]
