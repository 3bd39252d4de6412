"""Configuration section models.

This module provides the Pydantic models for the [author] and [logging]
configuration sections.
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from planvault.config._models._common import LogFormat, LogLevel


class AuthorSection(BaseModel):
    """Author configuration section.

    Attributes:
        name: Commit author name (empty resolves from environment or git).
        email: Commit author email (empty resolves from environment or git).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    name: str = ""
    email: str = ""


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty disables file logging).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""
