# ruff: noqa: TC003  # Path needed at runtime for Protocol method signatures
"""Repository protocols for type-safe dependency injection.

This module defines runtime-checkable Protocols that both Repository and
FakeRepository satisfy, so the data-access layer can depend on the contract
instead of the git-backed implementation.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from planvault.repository._models import (
        AuthorConfiguration,
        CommitInfo,
        RepositoryStatus,
        TransactionState,
    )


@runtime_checkable
class TransactionProtocol(Protocol):
    """Protocol for a single stage-then-commit unit of change.

    Example:
        >>> def save(repo: RepositoryProtocol, files: list[str]) -> str:
        ...     with repo.begin() as tx:
        ...         tx.stage(files)
        ...         return tx.commit("Save plan")
    """

    @property
    def state(self) -> "TransactionState":
        """Current lifecycle state."""
        ...

    @property
    def is_open(self) -> bool:
        """True until the transaction is committed or canceled."""
        ...

    def stage(self, patterns: "Iterable[str] | str") -> frozenset[str]:
        """Stage files matching patterns.

        Raises:
            TransactionFinalizedError: If the transaction is not open.
            StagingError: If a pattern matches nothing.
        """
        ...

    def commit(self, message: str) -> str:
        """Commit staged changes and return the commit id.

        Raises:
            TransactionFinalizedError: If the transaction is not open.
            CommitError: If the commit cannot be created.
        """
        ...

    def cancel(self) -> None:
        """Discard staged changes; a no-op on a finalized transaction."""
        ...

    def __enter__(self) -> "TransactionProtocol":
        ...

    def __exit__(self, *args: object) -> None:
        ...


@runtime_checkable
class RepositoryProtocol(Protocol):
    """Protocol for a transactional, versioned data directory."""

    @property
    def path(self) -> Path:
        """The repository path as given by the caller."""
        ...

    @property
    def canonical_path(self) -> Path:
        """The canonical path used as lock key."""
        ...

    @property
    def author(self) -> "AuthorConfiguration":
        """The identity attached to commits."""
        ...

    def status(self) -> "RepositoryStatus":
        """Take a snapshot of the working tree and index."""
        ...

    def has_changes(self) -> bool:
        """Check if there are staged, modified, or untracked files."""
        ...

    def begin(self) -> TransactionProtocol:
        """Start a transaction, blocking while another one is open."""
        ...

    def get_history(self, limit: int = 0) -> "list[CommitInfo]":
        """Get commits, most recent first; 0 means unlimited."""
        ...

    def get_file_history(
        self, relative_path: str | Path, limit: int = 0
    ) -> "list[CommitInfo]":
        """Get commits that changed one file, most recent first."""
        ...

    def get_file_differences(self, commit_a: str, commit_b: str) -> bytes:
        """Get a unified diff between two commits.

        Raises:
            HistoryQueryError: If either reference does not resolve.
        """
        ...

    def get_file_at_commit(
        self, relative_path: str | Path, commit: str
    ) -> bytes | None:
        """Get file content at a commit, or None if absent."""
        ...

    def get_history_stream(self) -> "Iterator[CommitInfo]":
        """Lazily enumerate the history, most recent first."""
        ...

    def close(self) -> None:
        """Release resources held by the repository."""
        ...
