from pathlib import Path
from typing import cast

import pytest
from cyclopts import App
from pytest_mock import MockerFixture
from rich.console import Console

from planvault.cli import CLIContext, create_app
from planvault.cli._commands import ExitCode, exit_with_error, register_commands
from planvault.cli._commands._shared import _effective_level  # pyright: ignore[reportPrivateUsage]


class TestCommandRegistration:
    def test_register_commands_registers_subcommands(
        self, mocker: MockerFixture
    ) -> None:
        mock_app = mocker.MagicMock(spec=App)
        register_commands(mock_app)

        names = {call.kwargs["name"] for call in mock_app.command.call_args_list}  # pyright: ignore[reportAny]
        assert names == {"init", "status", "log", "diff", "show", "commit"}

    def test_create_app_uses_given_consoles(self, console: Console) -> None:
        app = create_app(console=console, error_console=console)
        assert isinstance(app, App)
        assert cast("object", app.console) is console


class TestCLIContext:
    def test_default_when_unset(self) -> None:
        ctx = CLIContext.get_current()
        assert ctx.verbose is False
        assert ctx.config_path is None

    def test_set_and_reset(self, console: Console) -> None:
        ctx = CLIContext(config_path=Path("x.toml"), verbose=True, console=console)
        CLIContext.set_current(ctx)
        try:
            assert CLIContext.get_current() is ctx
        finally:
            CLIContext.reset()
        assert CLIContext.get_current() is not ctx


class TestExitWithError:
    def test_prints_and_exits(self, console: Console) -> None:
        with pytest.raises(SystemExit) as exc_info:
            exit_with_error("broken", console=console)

        assert exc_info.value.code == ExitCode.ERROR

    def test_uses_context_error_console(self, mocker: MockerFixture) -> None:
        error_console = mocker.MagicMock(spec=Console)
        CLIContext.set_current(CLIContext(error_console=error_console))
        try:
            with pytest.raises(SystemExit):
                exit_with_error("broken")
        finally:
            CLIContext.reset()

        error_console.print.assert_called_once()


class TestEffectiveLevel:
    def test_warning_without_log_file(self) -> None:
        assert _effective_level("debug", "") == "warning"

    def test_configured_level_with_log_file(self) -> None:
        assert _effective_level("info", "/tmp/planvault.log") == "info"

    def test_verbose_forces_debug(self) -> None:
        CLIContext.set_current(CLIContext(verbose=True))
        try:
            assert _effective_level("error", "") == "debug"
        finally:
            CLIContext.reset()
