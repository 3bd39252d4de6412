from collections.abc import Callable
from pathlib import Path

import pytest
from rich.console import Console

from planvault.cli import create_app

RunFunc = Callable[..., int]


@pytest.fixture(autouse=True)
def _isolated_cli(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point the user config at an empty location and pin the author."""
    monkeypatch.setattr(
        "planvault.config._discovery.get_user_config_path",
        lambda: tmp_path / "user-config.toml",
    )
    monkeypatch.setenv("PLANVAULT_AUTHOR_NAME", "CLI User")
    monkeypatch.setenv("PLANVAULT_AUTHOR_EMAIL", "cli@example.com")


@pytest.fixture
def planvault_cli(console: Console) -> RunFunc:
    """Create the CLI app for testing and return a runner.

    The runner goes through the meta app so global options and the CLI
    context apply, and returns the exit code (0 if no SystemExit).
    """
    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        try:
            app.meta(list(args))
        except SystemExit as e:
            if e.code is None:
                return 0
            return e.code if isinstance(e.code, int) else 1
        else:
            return 0

    return _run
