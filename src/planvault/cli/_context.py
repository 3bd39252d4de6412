# pyright: reportUnusedCallResult=false
# ruff: noqa: TC003  # Path needed at runtime for dataclass field
"""CLI context for global state management.

This module provides context management for global CLI options. The
CLIContext is set once at CLI startup and made available to all commands
via contextvars.
"""

import contextvars
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

# Context variable for CLIContext
_current_cli_context: contextvars.ContextVar["CLIContext | None"] = (
    contextvars.ContextVar("cli_context", default=None)
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global CLI options shared by every command.

    Configuration is loaded per command, since the repository-level config
    file depends on the --repo option of that command.

    Attributes:
        config_path: Explicit config file from --config.
        verbose: Enable debug logging to stderr.
        console: Console for regular output.
        error_console: Console for error output.
    """

    config_path: Path | None = None
    verbose: bool = False
    console: Console = field(default_factory=Console, repr=False)
    error_console: Console = field(
        default_factory=lambda: Console(stderr=True), repr=False
    )

    @classmethod
    def get_current(cls) -> "CLIContext":
        """Get current active CLIContext, or create a default if not set.

        Returns:
            The currently active CLIContext, or a default instance if none is set.
        """
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx
        return cls()

    @classmethod
    def set_current(cls, ctx: "CLIContext") -> None:
        """Set the current active CLIContext.

        Args:
            ctx: The CLIContext to set as current.
        """
        _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Reset to default context."""
        _current_cli_context.set(None)
