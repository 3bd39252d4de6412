# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""Fake repository for testing.

This module provides FakeRepository and FakeTransaction, in-memory
implementations of RepositoryProtocol and TransactionProtocol. They follow
the same transaction state machine, locking rules, staging pattern
semantics and errors as the git-backed Repository, without touching disk.
"""

import hashlib
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType
from typing import Self

from dulwich.patch import unified_diff

from planvault.exceptions import (
    CommitError,
    HistoryQueryError,
    TransactionFinalizedError,
)
from planvault.repository._history import normalize_relative_path
from planvault.repository._models import (
    AuthorConfiguration,
    CommitInfo,
    RepositoryStatus,
    TransactionState,
)
from planvault.repository._patterns import PatternResolver

_MIN_SHA_ABBREV_LENGTH = 4


class FakeTransaction:
    """In-memory transaction bound to a FakeRepository."""

    __slots__ = ("_repository", "_staged", "_state")

    def __init__(self, repository: "FakeRepository") -> None:
        self._repository: FakeRepository = repository
        self._staged: set[str] = set()
        self._state: TransactionState = TransactionState.OPEN

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.cancel()

    @property
    def state(self) -> TransactionState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_open(self) -> bool:
        """True until the transaction is committed or canceled."""
        return self._state is TransactionState.OPEN

    def _ensure_open(self, operation: str) -> None:
        if self._state is not TransactionState.OPEN:
            msg = f"Cannot {operation}: transaction is already {self._state.value}"
            raise TransactionFinalizedError(msg, state=self._state.value)

    def _finalize(self, state: TransactionState) -> None:
        self._state = state
        self._repository.lock.release()

    def stage(self, patterns: Iterable[str] | str) -> frozenset[str]:
        """Stage in-memory files matching patterns.

        Args:
            patterns: Staging patterns, same semantics as Transaction.stage().

        Returns:
            Paths added to or removed from the fake index.
        """
        self._ensure_open("stage")
        pattern_list = [patterns] if isinstance(patterns, str) else list(patterns)

        repo = self._repository
        resolver = PatternResolver(
            repo.root,
            candidates=repo.working_tree,
            missing=set(repo.index) - set(repo.working_tree),
        )
        plan = resolver.resolve(pattern_list)
        for path in plan.additions:
            repo.index[path] = repo.working_tree[path]
        for path in plan.removals:
            _ = repo.index.pop(path, None)

        self._staged |= plan.paths
        return plan.paths

    def commit(self, message: str) -> str:
        """Record the fake index as a new commit.

        Raises:
            TransactionFinalizedError: If the transaction is not open.
            CommitError: If the index matches HEAD.
        """
        self._ensure_open("commit")
        committed = False
        try:
            commit_id = self._repository._record_commit(message)  # noqa: SLF001
            committed = True
        finally:
            if committed:
                self._finalize(TransactionState.COMMITTED)
            else:
                self._rollback()
                self._finalize(TransactionState.CANCELED)
        return commit_id

    def cancel(self) -> None:
        """Restore staged paths to HEAD; a no-op once finalized."""
        if self._state is not TransactionState.OPEN:
            return
        self._rollback()
        self._finalize(TransactionState.CANCELED)

    def _rollback(self) -> None:
        head = self._repository.head_snapshot()
        for path in self._staged:
            if path in head:
                self._repository.index[path] = head[path]
            else:
                _ = self._repository.index.pop(path, None)
        self._staged.clear()


@dataclass(slots=True)
class FakeRepository:
    """Fake versioned repository for testing.

    Implements RepositoryProtocol without requiring an actual git repository.
    Files live in the ``working_tree`` dict; tests write to it directly or
    through write_file()/delete_file().

    Example:
        >>> repo = FakeRepository()
        >>> repo.write_file("a.txt", b"hello")
        >>> with repo.begin() as tx:
        ...     tx.stage(["a.txt"])
        ...     commit_id = tx.commit("init")
        >>> repo.get_history()[0].message
        'init'
    """

    path: Path = field(default_factory=lambda: Path("/fake/planner"))
    author: AuthorConfiguration = field(
        default_factory=lambda: AuthorConfiguration("Fake Author", "fake@example.com")
    )
    working_tree: dict[str, bytes] = field(default_factory=dict)
    index: dict[str, bytes] = field(default_factory=dict)
    commits: list[CommitInfo] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)
    closed: bool = False
    _snapshots: dict[str, dict[str, bytes]] = field(default_factory=dict)

    # =========================================================================
    # Context Manager Protocol
    # =========================================================================

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Mark the repository closed."""
        self.closed = True

    # =========================================================================
    # RepositoryProtocol Methods
    # =========================================================================

    @property
    def root(self) -> Path:
        """Alias of canonical_path, used by pattern resolution."""
        return self.path

    @property
    def canonical_path(self) -> Path:
        """The fake has no symlinks, so this is the path itself."""
        return self.path

    def head_snapshot(self) -> dict[str, bytes]:
        """Get the file contents recorded by the newest commit."""
        if not self.commits:
            return {}
        return self._snapshots[self.commits[0].id]

    def status(self) -> RepositoryStatus:
        """Compare the fake working tree, index and HEAD."""
        head = self.head_snapshot()
        staged = {p for p in head.keys() | self.index.keys() if head.get(p) != self.index.get(p)}
        modified = {
            p for p, content in self.index.items() if self.working_tree.get(p) != content
        }
        untracked = self.working_tree.keys() - self.index.keys()
        return RepositoryStatus(
            staged_files=tuple(sorted(staged)),
            untracked_files=tuple(sorted(untracked)),
            has_conflicts=False,
            modified_files=tuple(sorted(modified)),
        )

    def has_changes(self) -> bool:
        """Check if there are staged, modified, or untracked files."""
        return not self.status().is_clean

    def begin(self) -> FakeTransaction:
        """Acquire the fake's lock and start a transaction."""
        _ = self.lock.acquire()
        return FakeTransaction(self)

    def get_history(self, limit: int = 0) -> list[CommitInfo]:
        """Get recorded commits, most recent first."""
        return list(self.commits[:limit] if limit > 0 else self.commits)

    def get_file_history(self, relative_path: str | Path, limit: int = 0) -> list[CommitInfo]:
        """Get commits whose snapshot changed a file, most recent first."""
        rel = normalize_relative_path(relative_path)
        result: list[CommitInfo] = []
        for i, commit in enumerate(self.commits):
            parent = self._snapshots[self.commits[i + 1].id] if i + 1 < len(self.commits) else {}
            if self._snapshots[commit.id].get(rel) != parent.get(rel):
                result.append(commit)
        return result[:limit] if limit > 0 else result

    def get_file_differences(self, commit_a: str, commit_b: str) -> bytes:
        """Diff two recorded snapshots."""
        before = self._snapshots[self._resolve(commit_a)]
        after = self._snapshots[self._resolve(commit_b)]
        parts: list[bytes] = []
        for path in sorted(before.keys() | after.keys()):
            if before.get(path) == after.get(path):
                continue
            from_path = f"a/{path}" if path in before else "/dev/null"
            to_path = f"b/{path}" if path in after else "/dev/null"
            parts.append(f"diff --git a/{path} b/{path}\n".encode())
            parts.extend(
                unified_diff(
                    before.get(path, b"").splitlines(keepends=True),
                    after.get(path, b"").splitlines(keepends=True),
                    fromfile=from_path.encode(),
                    tofile=to_path.encode(),
                )
            )
        return b"".join(parts)

    def get_file_at_commit(self, relative_path: str | Path, commit: str) -> bytes | None:
        """Get file content from a recorded snapshot."""
        return self._snapshots[self._resolve(commit)].get(
            normalize_relative_path(relative_path)
        )

    def get_history_stream(self) -> Iterator[CommitInfo]:
        """Yield a copy of the history, most recent first."""
        yield from list(self.commits)

    # =========================================================================
    # Test Helper Methods
    # =========================================================================

    def write_file(self, relative_path: str, content: bytes) -> None:
        """Create or overwrite a file in the fake working tree."""
        self.working_tree[relative_path] = content

    def delete_file(self, relative_path: str) -> None:
        """Remove a file from the fake working tree."""
        _ = self.working_tree.pop(relative_path, None)

    def _resolve(self, reference: str) -> str:
        sha = reference.strip().lower()
        matches = (
            [c.id for c in self.commits if c.id.startswith(sha)]
            if len(sha) >= _MIN_SHA_ABBREV_LENGTH
            else []
        )
        if len(matches) != 1:
            msg = f"Commit not found: {reference}"
            raise HistoryQueryError(msg, reference=reference)
        return matches[0]

    def _record_commit(self, message: str) -> str:
        head = self.head_snapshot()
        if self.index == head:
            msg = "Nothing to commit: the index matches HEAD"
            raise CommitError(msg, path=self.path)

        parent_ids = (self.commits[0].id,) if self.commits else ()
        digest = hashlib.sha1(  # noqa: S324
            f"{len(self.commits)}:{parent_ids}:{message}".encode()
        ).hexdigest()
        self.commits.insert(
            0,
            CommitInfo(
                id=digest,
                author=self.author.name,
                email=self.author.email,
                timestamp=datetime.now(UTC),
                message=message,
                parent_ids=parent_ids,
            ),
        )
        self._snapshots[digest] = dict(self.index)
        return digest
