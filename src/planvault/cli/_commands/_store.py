# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# ruff: noqa: D415, FBT002, TC003
"""Repository inspection and maintenance commands."""

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter

from planvault.exceptions import PlanvaultError

from .._context import CLIContext
from ._shared import exit_with_error, open_repository

RepoOption = Annotated[
    Path | None,
    Parameter(name=["--repo"], help="Repository directory (default: current directory)"),
]


def init_command(repo: RepoOption = None) -> None:
    """Create a repository, or open an existing one"""
    console = CLIContext.get_current().console
    with open_repository(repo, command="init", create=True) as repository:
        console.print(f"[green]Repository ready at {repository.canonical_path}[/green]")


def status_command(repo: RepoOption = None) -> None:
    """Show staged, modified and untracked files"""
    console = CLIContext.get_current().console

    with open_repository(repo, command="status") as repository:
        status = repository.status()

        if status.has_conflicts:
            console.print("[bold red]Index has unresolved conflicts[/bold red]")

        if status.is_clean:
            console.print("[dim]No uncommitted changes[/dim]")
            return

        if status.staged_files:
            console.print("[bold green]Staged files:[/bold green]")
            for path in status.staged_files:
                console.print(f"  [green]+ {path}[/green]", highlight=False)

        if status.modified_files:
            console.print("[bold yellow]Modified files:[/bold yellow]")
            for path in status.modified_files:
                console.print(f"  [yellow]~ {path}[/yellow]", highlight=False)

        if status.untracked_files:
            console.print("[bold cyan]Untracked files:[/bold cyan]")
            for path in status.untracked_files:
                console.print(f"  [cyan]? {path}[/cyan]", highlight=False)


def log_command(
    repo: RepoOption = None,
    *,
    n: Annotated[
        int,
        Parameter(name=["--number", "-n"], help="Number of commits to show (0 for all)"),
    ] = 10,
    file: Annotated[
        str | None,
        Parameter(name=["--file"], help="Only show commits that changed this file"),
    ] = None,
) -> None:
    """Show commit history, most recent first"""
    console = CLIContext.get_current().console

    with open_repository(repo, command="log") as repository:
        if file is None:
            commits = repository.get_history(n)
        else:
            commits = repository.get_file_history(file, n)

        if not commits:
            console.print("[dim]No commits yet[/dim]")
            return

        for commit in commits:
            subject = (
                commit.message.splitlines()[0] if commit.message else "(no message)"
            )
            console.print(f"[yellow]{commit.id[:8]}[/yellow] {subject}", highlight=False)
            console.print(
                f"  [dim]{commit.author} <{commit.email}>[/dim]", highlight=False
            )
            console.print(
                f"  [dim]{commit.timestamp.strftime('%Y-%m-%d %H:%M:%S %z')}[/dim]"
            )
            console.print()


def diff_command(
    commit_a: str,
    commit_b: str,
    *,
    repo: RepoOption = None,
) -> None:
    """Show the unified diff between two commits

    Parameters
    ----------
    commit_a
        The "before" commit (full id or abbreviation).
    commit_b
        The "after" commit (full id or abbreviation).
    """
    console = CLIContext.get_current().console

    with open_repository(repo, command="diff") as repository:
        try:
            diff = repository.get_file_differences(commit_a, commit_b)
        except PlanvaultError as e:
            exit_with_error(str(e))

        console.print(
            diff.decode("utf-8", errors="replace"),
            markup=False,
            highlight=False,
            soft_wrap=True,
            end="",
        )


def show_command(
    commit: str,
    path: str,
    *,
    repo: RepoOption = None,
) -> None:
    """Print a file as of a commit

    Parameters
    ----------
    commit
        Commit id or abbreviation.
    path
        Repository-relative file path.
    """
    console = CLIContext.get_current().console

    with open_repository(repo, command="show") as repository:
        try:
            content = repository.get_file_at_commit(path, commit)
        except PlanvaultError as e:
            exit_with_error(str(e))

        if content is None:
            exit_with_error(f"{path} does not exist at {commit}")

        console.print(
            content.decode("utf-8", errors="replace"),
            markup=False,
            highlight=False,
            soft_wrap=True,
            end="",
        )


def commit_command(
    *patterns: str,
    message: Annotated[
        str,
        Parameter(name=["--message", "-m"], help="Commit message"),
    ],
    repo: RepoOption = None,
) -> None:
    """Stage files and commit them in one transaction

    Parameters
    ----------
    patterns
        Files, directories or globs to stage (default: everything).
    """
    console = CLIContext.get_current().console

    with open_repository(repo, command="commit") as repository:
        try:
            with repository.begin() as tx:
                staged = tx.stage(list(patterns) or ["."])
                commit_id = tx.commit(message)
        except PlanvaultError as e:
            exit_with_error(str(e))

        console.print(f"[green]Committed {len(staged)} file(s)[/green]")
        console.print(f"[dim]SHA: {commit_id}[/dim]", highlight=False)
