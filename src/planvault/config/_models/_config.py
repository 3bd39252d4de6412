# pyright: reportExplicitAny=false, reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Configuration container with typed access.

This module provides the main Config class that serves as the primary
interface for accessing planvault configuration values.
"""

from pathlib import Path  # noqa: TC003 - Used at runtime in classmethod signatures
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict, PrivateAttr, ValidationError

from planvault.config._defaults import DEFAULT_CONFIG
from planvault.config._loader import copy_value, deep_merge, parse_env_vars, read_toml_file
from planvault.config._models._common import ConfigSource, ConfigSourceName
from planvault.config._models._sections import AuthorSection, LoggingConfig
from planvault.exceptions import ConfigValidationError
from planvault.repository._models import AuthorConfiguration
from planvault.utils._author import resolve_author_identity


class Config(BaseModel):
    """Configuration container with typed access.

    Immutable. Use the factory methods from_dict(), from_file() and load()
    rather than the constructor.

    Attributes:
        author: The [author] section.
        logging: The [logging] section.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    author: AuthorSection = AuthorSection()
    logging: LoggingConfig = LoggingConfig()

    _data: dict[str, Any] = PrivateAttr(default_factory=dict)
    _sources: tuple[ConfigSource, ...] = PrivateAttr(default=())

    @classmethod
    def _from_merged(
        cls,
        merged: dict[str, Any],
        *,
        source: str | None = None,
        sources: tuple[ConfigSource, ...] = (),
    ) -> Self:
        """Validate a merged dictionary and attach its provenance.

        Raises:
            ConfigValidationError: For the first invalid value.
        """
        try:
            config = cls.model_validate(merged)
        except ValidationError as e:
            error = e.errors()[0]
            key = ".".join(str(part) for part in error.get("loc", ()))
            ctx = error.get("ctx") or {}
            expected = str(ctx.get("expected", error.get("msg", "valid value")))
            msg = f"Invalid configuration value for '{key}'"
            raise ConfigValidationError(
                msg,
                key=key,
                value=error.get("input"),
                expected=expected,
                source=source,
            ) from e

        config._data = merged
        config._sources = sources
        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Args:
            data: Dictionary of configuration values.

        Returns:
            Configuration object from the dictionary.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return cls._from_merged(deep_merge(DEFAULT_CONFIG, data))

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a single file merged over the defaults.

        Args:
            path: Path to the TOML config file.

        Returns:
            Configuration object from the specified file only.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        data = read_toml_file(path)
        source = ConfigSource(
            name=ConfigSourceName.USER, path=path, exists=True, values=data
        )
        return cls._from_merged(
            deep_merge(DEFAULT_CONFIG, data), source=str(path), sources=(source,)
        )

    @classmethod
    def load(
        cls,
        *,
        repository: Path | None = None,
        user_config_path: Path | None = None,
        include_env: bool = True,
        cli_overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Sources are merged in precedence order
        (defaults -> user -> repository -> env -> cli).

        Args:
            repository: Repository root whose .git/planvault.toml applies.
            user_config_path: Replacement for the platform user config file.
            include_env: Include PLANVAULT_<SECTION>__<KEY> variables.
            cli_overrides: Dict of CLI argument overrides.

        Returns:
            Merged configuration object.

        Raises:
            ConfigLoadError: If config files cannot be parsed.
            ConfigValidationError: If merged config fails validation.
        """
        # Deferred import to avoid circular dependency
        from planvault.config._discovery import discover_sources  # noqa: PLC0415

        sources = discover_sources(
            repository,
            user_config_path=user_config_path,
            include_env=include_env,
            cli_overrides=cli_overrides,
        )

        merged: dict[str, Any] = {}
        loaded_sources: list[ConfigSource] = []

        # Sources are discovered highest-to-lowest, so reverse for merging
        for source in reversed(sources):
            values: dict[str, Any] = {}
            if source.name in (ConfigSourceName.DEFAULT, ConfigSourceName.CLI):
                values = source.values
            elif source.name == ConfigSourceName.ENV:
                values = parse_env_vars()
            elif source.path and source.exists:
                values = read_toml_file(source.path)

            loaded_sources.append(
                ConfigSource(
                    name=source.name,
                    path=source.path,
                    exists=source.exists,
                    values=values,
                )
            )
            if values:
                merged = deep_merge(merged, values)

        return cls._from_merged(merged, sources=tuple(reversed(loaded_sources)))

    @property
    def sources(self) -> list[ConfigSource]:
        """Return the sources that contributed, highest precedence first."""
        return list(self._sources)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., "logging.level").
            default: Default value if key not found.

        Returns:
            The configuration value, or default if not found.

        Examples:
            >>> config.get("logging.level")
            'info'
            >>> config.get("nonexistent", "fallback")
            'fallback'
        """
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def to_dict(self) -> dict[str, Any]:
        """Return a copy of the merged configuration dictionary."""
        return copy_value(self._data)

    def resolve_author(self) -> AuthorConfiguration:
        """Build the commit identity, filling gaps from environment or git.

        Returns:
            AuthorConfiguration with a non-empty name and email.
        """
        name, email = resolve_author_identity(
            self.author.name or None, self.author.email or None
        )
        return AuthorConfiguration(name=name, email=email)


