# ruff: noqa: TC003  # datetime needed at runtime for dataclass fields
"""Versioned repository models.

This module defines data structures for representing repository state,
commit metadata, and transaction lifecycle.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


@dataclass(frozen=True, slots=True)
class AuthorConfiguration:
    """Identity attached to every commit produced through a repository.

    Attributes:
        name: Author and committer name.
        email: Author and committer email address.
    """

    name: str
    email: str

    def as_identity(self) -> bytes:
        """Format the identity as a git signature line.

        Returns:
            Identity bytes in "Name <email>" format.
        """
        return f"{self.name} <{self.email}>".encode()


@dataclass(frozen=True, slots=True)
class RepositoryStatus:
    """Point-in-time file status snapshot.

    All paths are repository-relative POSIX strings, sorted.

    Attributes:
        staged_files: Files whose index content differs from HEAD.
        untracked_files: Files present in the working tree but not in the index.
        has_conflicts: True if the index holds unresolved conflict entries.
        modified_files: Tracked files whose working tree content differs
            from the index.
    """

    staged_files: tuple[str, ...]
    untracked_files: tuple[str, ...]
    has_conflicts: bool
    modified_files: tuple[str, ...] = ()

    @property
    def is_clean(self) -> bool:
        """True if nothing is staged, modified, or untracked."""
        return not (self.staged_files or self.untracked_files or self.modified_files)


@dataclass(frozen=True, slots=True)
class CommitInfo:
    """Information about a single commit.

    Attributes:
        id: Full 40-character commit SHA hex string.
        author: Author name from the commit.
        email: Author email from the commit.
        timestamp: Author timestamp with the commit's timezone.
        message: Complete commit message.
        parent_ids: SHA hex strings of parent commits (empty for the root commit).
    """

    id: str
    author: str
    email: str
    timestamp: datetime
    message: str
    parent_ids: tuple[str, ...] = ()


class TransactionState(StrEnum):
    """Lifecycle states of a transaction.

    OPEN is the only non-terminal state.
    """

    OPEN = "open"
    COMMITTED = "committed"
    CANCELED = "canceled"
