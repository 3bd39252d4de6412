"""Planvault versioned storage.

This package turns a working directory into a git-backed, append-only
history of atomic multi-file commits, with per-repository mutual exclusion,
history queries, and diffs.

Classes:
    Repository: Handle on a versioned directory.
    Transaction: Exclusive stage-then-commit unit of change.
    HistoryReader: Read-only log, diff and content queries.
    LockRegistry: Process-wide map from canonical path to lock.
    RepositoryProtocol: Runtime-checkable protocol for dependency injection.
    TransactionProtocol: Runtime-checkable protocol for transactions.
    FakeRepository: In-memory implementation for tests.

Models:
    AuthorConfiguration: Identity attached to commits.
    CommitInfo: Metadata about a single commit.
    RepositoryStatus: Status snapshot.
    TransactionState: Transaction lifecycle states.

Example:
    >>> from planvault.repository import AuthorConfiguration, initialize_repository
    >>> author = AuthorConfiguration("Ada", "ada@example.com")
    >>> with initialize_repository(Path("~/planner"), author) as repo:
    ...     with repo.begin() as tx:
    ...         tx.stage(["."])
    ...         tx.commit("Save plan")
    ...     history = repo.get_history()
"""

from planvault.repository._fake import FakeRepository, FakeTransaction
from planvault.repository._history import HistoryReader, stream_history
from planvault.repository._locks import LockRegistry, canonicalize
from planvault.repository._models import (
    AuthorConfiguration,
    CommitInfo,
    RepositoryStatus,
    TransactionState,
)
from planvault.repository._patterns import (
    PatternKind,
    PatternResolver,
    StagingPlan,
    classify_pattern,
    match_glob,
)
from planvault.repository._protocol import RepositoryProtocol, TransactionProtocol
from planvault.repository._repository import Repository, initialize_repository
from planvault.repository._transaction import Transaction

__all__ = [
    "AuthorConfiguration",
    "CommitInfo",
    "FakeRepository",
    "FakeTransaction",
    "HistoryReader",
    "LockRegistry",
    "PatternKind",
    "PatternResolver",
    "RepositoryProtocol",
    "RepositoryStatus",
    "Repository",
    "StagingPlan",
    "Transaction",
    "TransactionProtocol",
    "TransactionState",
    "canonicalize",
    "classify_pattern",
    "initialize_repository",
    "match_glob",
    "stream_history",
]
