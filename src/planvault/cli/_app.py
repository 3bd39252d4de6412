"""The command-line interface for planvault."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from ._commands import register_commands
from ._context import CLIContext

_HELP = "Versioned, transactional storage for planning files."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="planvault",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        verbose: Annotated[bool, Parameter(help="Log debug output to stderr")] = False,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
    ) -> None:
        """Launch planvault with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            verbose: Log debug output to stderr.
            config: Explicit path to config file.
        """
        CLIContext.set_current(
            CLIContext(
                config_path=config,
                verbose=verbose,
                console=console,
                error_console=error_console,
            )
        )

        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `planvault` CLI."""
    create_app().meta()


if __name__ == "__main__":
    main()
