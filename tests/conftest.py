"""Shared test fixtures for planvault tests."""

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from rich.console import Console

from planvault.repository import (
    AuthorConfiguration,
    LockRegistry,
    Repository,
    initialize_repository,
)

WriteFunc = Callable[..., Path]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's environment out of config and author resolution."""
    for key in (
        "PLANVAULT_AUTHOR_NAME",
        "PLANVAULT_AUTHOR_EMAIL",
        "PLANVAULT_DEBUG",
        "PLANVAULT_LOG_LEVEL",
        "PLANVAULT_STRICT_CONFIG",
        "PLANVAULT_AUTHOR__NAME",
        "PLANVAULT_AUTHOR__EMAIL",
        "PLANVAULT_LOGGING__LEVEL",
        "PLANVAULT_LOGGING__FORMAT",
        "PLANVAULT_LOGGING__FILE",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def author() -> AuthorConfiguration:
    return AuthorConfiguration(name="Test User", email="test@example.com")


@pytest.fixture
def locks() -> LockRegistry:
    """A private lock registry, so tests never contend with each other."""
    return LockRegistry()


@pytest.fixture
def repo_path(tmp_path: Path) -> Path:
    return tmp_path / "planner"


@pytest.fixture
def repository(
    repo_path: Path, author: AuthorConfiguration, locks: LockRegistry
) -> Iterator[Repository]:
    """An empty repository without commits."""
    with initialize_repository(repo_path, author, locks=locks) as repo:
        yield repo


@pytest.fixture
def write(repo_path: Path) -> WriteFunc:
    """Return a function that writes a file below the repository root."""

    def _write(relative_path: str, content: str | bytes = "content\n") -> Path:
        target = repo_path / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content)
        return target

    return _write


CommitFunc = Callable[[dict[str, str | bytes], str], str]


@pytest.fixture
def commit_files(repository: Repository) -> CommitFunc:
    """Return a function that writes files and commits exactly those paths."""

    def _commit(files: dict[str, str | bytes], message: str) -> str:
        for relative_path, content in files.items():
            target = repository.canonical_path / relative_path
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content)

        with repository.begin() as tx:
            tx.stage(list(files))
            return tx.commit(message)

    return _commit


@pytest.fixture
def console() -> Console:
    return Console(
        width=120,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )
