"""Commit author resolution utilities."""

import os
import subprocess
from typing import Final

DEFAULT_AUTHOR_NAME: Final = "Planvault"
DEFAULT_AUTHOR_EMAIL: Final = "planvault@localhost"


def resolve_author_identity(
    name: str | None = None, email: str | None = None
) -> tuple[str, str]:
    """Resolve the name and email used for commits.

    Each field is resolved independently, first match wins:
    1. The explicit value (usually from configuration)
    2. Environment variables (PLANVAULT_AUTHOR_NAME, PLANVAULT_AUTHOR_EMAIL)
    3. Git config (user.name, user.email)
    4. "Planvault <planvault@localhost>"

    Args:
        name: Explicit author name, if configured.
        email: Explicit author email, if configured.

    Returns:
        Tuple of (name, email), both non-empty.
    """
    resolved_name = (
        name
        or os.environ.get("PLANVAULT_AUTHOR_NAME")
        or _git_config("user.name")
        or DEFAULT_AUTHOR_NAME
    )
    resolved_email = (
        email
        or os.environ.get("PLANVAULT_AUTHOR_EMAIL")
        or _git_config("user.email")
        or DEFAULT_AUTHOR_EMAIL
    )
    return resolved_name, resolved_email


def _git_config(key: str) -> str | None:
    """Read a value from the user's git config.

    Args:
        key: Git config key (e.g., "user.name").

    Returns:
        The config value, or None if not set or git is unavailable.
    """
    # Validate key to prevent injection
    if not key.replace(".", "").replace("_", "").isalnum():
        return None

    try:
        result = subprocess.run(  # noqa: S603
            ["git", "config", "--get", key],  # noqa: S607
            capture_output=True,
            text=True,
            check=True,
        )
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None
    return result.stdout.strip() or None
