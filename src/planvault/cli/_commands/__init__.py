"""Planvault CLI commands."""
# pyright: reportUnusedCallResult=false

from typing import TYPE_CHECKING

from ._shared import ExitCode, exit_with_error, open_repository
from ._store import (
    commit_command,
    diff_command,
    init_command,
    log_command,
    show_command,
    status_command,
)

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "ExitCode",
    "exit_with_error",
    "open_repository",
    "register_commands",
]


def register_commands(app: "App") -> None:
    app.command(init_command, name="init")
    app.command(status_command, name="status")
    app.command(log_command, name="log")
    app.command(diff_command, name="diff")
    app.command(show_command, name="show")
    app.command(commit_command, name="commit")
