"""Default configuration values.

This module defines the built-in default configuration values that are used
when no other configuration sources provide values. Empty author fields mean
"resolve from the environment or git config".
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "author": {
        "name": "",
        "email": "",
    },
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
}
