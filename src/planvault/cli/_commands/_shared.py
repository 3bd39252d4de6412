"""Shared helpers for planvault CLI commands."""

from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Never

from planvault.config import safe_load_config
from planvault.exceptions import PlanvaultError
from planvault.repository import initialize_repository
from planvault.utils._logging import create_cli_logger

from .._context import CLIContext

if TYPE_CHECKING:
    from rich.console import Console

    from planvault.repository import Repository


class ExitCode(IntEnum):
    """Exit codes for planvault CLI commands."""

    SUCCESS = 0
    ERROR = 1


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.ERROR,
    *,
    console: "Console | None" = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Args:
        message: The error message to display.
        code: The exit code to use.
        console: Optional Rich console for output. Defaults to the error
            console of the current CLI context.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = CLIContext.get_current().error_console

    console.print(f"[red]Error:[/red] {message}", highlight=False, markup=True)
    raise SystemExit(code)


def _effective_level(configured: str, log_file: str) -> str:
    # Without a log file, entries go to stderr and only problems are shown
    if CLIContext.get_current().verbose:
        return "debug"
    return configured if log_file else "warning"


def open_repository(
    repo: Path | None, *, command: str, create: bool = False
) -> "Repository":
    """Open a repository with configuration and logging for one command.

    Args:
        repo: Repository directory from --repo; the current directory if None.
        command: Command name bound to log entries.
        create: Create the repository if it does not exist yet.

    Returns:
        An open Repository handle.

    Raises:
        SystemExit: If the repository cannot be opened.
    """
    ctx = CLIContext.get_current()
    root = (repo or Path.cwd()).expanduser()
    if not create and not (root / ".git").is_dir():
        exit_with_error(f"Not a planvault repository: {root}")

    config, _ = safe_load_config(config_path=ctx.config_path, repository=root)
    logger = create_cli_logger(
        level=_effective_level(config.logging.level.value, config.logging.file),
        log_format=config.logging.format.value,  # type: ignore[arg-type]
        log_file=config.logging.file,
        command=command,
    )

    try:
        return initialize_repository(root, config.resolve_author(), logger=logger)
    except PlanvaultError as e:
        exit_with_error(str(e))
