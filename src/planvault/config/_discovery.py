"""Config path discovery utilities.

This module determines the platform-specific user configuration path and
the per-repository configuration path, and lists every configuration source
in precedence order.
"""

from pathlib import Path
from typing import Any, Final

import platformdirs

from ._defaults import DEFAULT_CONFIG
from ._models._common import ConfigSource, ConfigSourceName

REPOSITORY_CONFIG_NAME: Final = "planvault.toml"


def get_user_config_path() -> Path:
    r"""Get platform-specific user config file path.

    - Linux: ``~/.config/planvault/config.toml``
    - macOS: ``~/Library/Application Support/planvault/config.toml``
    - Windows: ``%APPDATA%\planvault\config.toml``

    The path is returned regardless of whether the file exists.

    Returns:
        Path to the user config file for the current platform.
    """
    return platformdirs.user_config_path("planvault") / "config.toml"


def get_repository_config_path(repository: Path) -> Path:
    """Get the config file path for one repository.

    The file lives inside the git directory so it is never staged.

    Args:
        repository: Repository root directory.

    Returns:
        Path to ``<repository>/.git/planvault.toml``.
    """
    return repository / ".git" / REPOSITORY_CONFIG_NAME


def _file_exists(path: Path) -> bool:
    """Check if a file exists, handling permission errors gracefully."""
    try:
        return path.is_file()
    except OSError:
        return False


def discover_sources(
    repository: Path | None = None,
    *,
    user_config_path: Path | None = None,
    include_env: bool = True,
    cli_overrides: dict[str, Any] | None = None,  # pyright: ignore[reportExplicitAny]
) -> list[ConfigSource]:
    """Discover all configuration sources.

    File-based sources are checked for existence but not read.

    Args:
        repository: Repository root, if the repository source applies.
        user_config_path: Replacement for the platform user config file.
        include_env: Include environment variables as a source.
        cli_overrides: Dictionary of CLI argument overrides.

    Returns:
        List of ConfigSource objects in precedence order (highest first).
        Sources that don't exist are still included with exists=False.
    """
    sources: list[ConfigSource] = []

    if cli_overrides is not None:
        sources.append(
            ConfigSource(
                name=ConfigSourceName.CLI,
                path=None,
                exists=bool(cli_overrides),
                values=cli_overrides,
            )
        )

    if include_env:
        sources.append(
            ConfigSource(
                name=ConfigSourceName.ENV,
                path=None,
                exists=True,  # Actual values parsed during loading phase
                values={},
            )
        )

    if repository is not None:
        repo_path = get_repository_config_path(repository)
        sources.append(
            ConfigSource(
                name=ConfigSourceName.REPOSITORY,
                path=repo_path,
                exists=_file_exists(repo_path),
                values={},
            )
        )

    user_path = user_config_path or get_user_config_path()
    sources.append(
        ConfigSource(
            name=ConfigSourceName.USER,
            path=user_path,
            exists=_file_exists(user_path),
            values={},
        )
    )

    sources.append(
        ConfigSource(
            name=ConfigSourceName.DEFAULT,
            path=None,
            exists=True,
            values=DEFAULT_CONFIG,
        )
    )

    return sources
