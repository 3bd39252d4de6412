# ruff: noqa: TC003  # Path needed at runtime for method bodies
"""Versioned repository handle.

This module provides the Repository class and initialize_repository(), the
entry point of the storage core. A Repository owns one git object database
and hands out Transactions, which hold the per-path lock while they stage
and commit. History and diff queries are delegated to HistoryReader and
never take the lock.

Example:
    >>> repo = initialize_repository(Path("~/planner"), author)
    >>> with repo.begin() as tx:
    ...     tx.stage(["themes.json", "tasks/*.json"])
    ...     tx.commit("Update plan")
"""

import os
import time
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Self, cast

from dulwich import porcelain
from dulwich.errors import NotGitRepository
from dulwich.ignore import IgnoreFilterManager
from dulwich.index import IndexEntry, blob_from_path_and_stat, index_entry_from_stat
from dulwich.object_store import tree_lookup_path
from dulwich.objects import Commit
from dulwich.repo import Repo

from planvault.exceptions import CommitError, InitializationError, StagingError
from planvault.repository._history import HistoryReader, stream_history
from planvault.repository._locks import LockRegistry, canonicalize
from planvault.repository._models import AuthorConfiguration, CommitInfo, RepositoryStatus
from planvault.repository._patterns import (
    PatternResolver,
    StagingPlan,
    scan_working_tree,
)
from planvault.repository._transaction import Transaction
from planvault.utils._author import resolve_author_identity
from planvault.utils._git import decode_bytes, sha_to_str
from planvault.utils._logging import create_null_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from dulwich.objects import Blob
    from structlog.typing import FilteringBoundLogger


def _subject(message: str) -> bytes:
    lines = message.splitlines()
    return lines[0].encode("utf-8") if lines else b""


class Repository:
    """Handle on a git-backed, transactional data directory.

    The handle is safe to share between threads: status and history queries
    run concurrently, while begin() serializes writers through the lock
    registry.

    Attributes:
        path: The path as given to initialize_repository().
        canonical_path: The symlink-free absolute path used as lock key.
        author: Identity attached to every commit made through this handle.
    """

    __slots__ = (
        "_author",
        "_canonical_path",
        "_closed",
        "_history",
        "_locks",
        "_logger",
        "_path",
        "_repo",
    )

    def __init__(
        self,
        path: Path | str,
        author: AuthorConfiguration,
        *,
        locks: LockRegistry | None = None,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Create or open the repository at path.

        Args:
            path: Repository directory. Missing directories are created.
            author: Identity for commits.
            locks: Lock registry to serialize transactions through. Defaults
                to the process-wide registry.
            logger: Optional logger; events are discarded when omitted.

        Raises:
            InitializationError: If the directory cannot be created, is not
                writable, or holds a corrupt repository.
        """
        self._path: Path = Path(path).expanduser()
        self._author: AuthorConfiguration = author
        self._locks: LockRegistry = (
            locks if locks is not None else LockRegistry.get_instance()
        )
        self._logger: FilteringBoundLogger = (
            logger if logger is not None else create_null_logger()
        )
        self._canonical_path: Path = self._prepare_directory()
        self._repo: Repo = self._open_or_create()
        self._history: HistoryReader = HistoryReader(self._repo, logger=self._logger)
        self._closed: bool = False

    def _prepare_directory(self) -> Path:
        try:
            self._path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Cannot create repository directory {self._path}: {e}"
            raise InitializationError(msg, path=self._path) from e

        canonical = canonicalize(self._path)
        if not canonical.is_dir():
            msg = f"Repository path is not a directory: {self._path}"
            raise InitializationError(msg, path=self._path)
        if not os.access(canonical, os.W_OK | os.X_OK):
            msg = f"Repository directory is not writable: {self._path}"
            raise InitializationError(msg, path=self._path)
        return canonical

    def _open_or_create(self) -> Repo:
        root = self._canonical_path
        if (root / ".git").exists():
            try:
                repo = Repo(str(root))
            except (NotGitRepository, OSError) as e:
                msg = f"Cannot open repository at {root}: {e}"
                raise InitializationError(msg, path=self._path) from e
            self._logger.debug("repository_opened", path=str(root))
            return repo

        try:
            repo = Repo.init(str(root))
        except OSError as e:
            msg = f"Cannot initialize repository at {root}: {e}"
            raise InitializationError(msg, path=self._path) from e
        self._logger.info("repository_initialized", path=str(root))
        return repo

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
        """Release the underlying git repository.

        Safe to call more than once. History streams already handed out
        keep working, since each owns its own read handle.
        """
        if self._closed:
            return
        self._closed = True
        self._repo.close()
        self._logger.debug("repository_closed", path=str(self._canonical_path))

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def path(self) -> Path:
        """The repository path as given by the caller."""
        return self._path

    @property
    def canonical_path(self) -> Path:
        """The canonical path used as lock key."""
        return self._canonical_path

    @property
    def author(self) -> AuthorConfiguration:
        """The identity attached to commits."""
        return self._author

    # =========================================================================
    # Status
    # =========================================================================

    def status(self) -> RepositoryStatus:
        """Take a snapshot of the working tree and index.

        Never blocks on the transaction lock.

        Returns:
            RepositoryStatus with sorted repository-relative paths.
        """
        raw = porcelain.status(self._repo, untracked_files="all")

        # Extract staged files from dict with keys: 'add', 'delete', 'modify'
        staged: set[str] = set()
        staged_dict = raw.staged  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
        for change_type in ("add", "delete", "modify"):
            files: list[bytes] = staged_dict.get(change_type, [])  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
            staged.update(decode_bytes(f) for f in files)

        modified = {decode_bytes(f) for f in raw.unstaged}  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
        untracked = {decode_bytes(f) for f in raw.untracked}  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]

        return RepositoryStatus(
            staged_files=tuple(sorted(staged)),
            untracked_files=tuple(sorted(untracked)),
            has_conflicts=self._has_conflicts(),
            modified_files=tuple(sorted(modified)),
        )

    def has_changes(self) -> bool:
        """Check if the repository has any uncommitted changes.

        Returns:
            True if there are staged, modified, or untracked files.
        """
        return not self.status().is_clean

    def _has_conflicts(self) -> bool:
        index = self._repo.open_index()
        # Conflicted entries are stored as ConflictedIndexEntry, not IndexEntry
        return any(not isinstance(entry, IndexEntry) for _, entry in index.items())

    # =========================================================================
    # Transactions
    # =========================================================================

    def begin(self) -> Transaction:
        """Start a transaction, waiting for any open one on the same path.

        Blocks without timeout. The lock is not reentrant, so calling begin()
        twice from one thread without finalizing the first transaction
        deadlocks.

        Returns:
            An open Transaction holding the repository lock.
        """
        lock = self._locks.lock_for(self._canonical_path)
        if lock.locked():
            self._logger.debug(
                "transaction_waiting", path=str(self._canonical_path)
            )
        _ = lock.acquire()
        self._logger.debug("transaction_acquired", path=str(self._canonical_path))
        return Transaction(self, lock, logger=self._logger)

    def _resolve_staging(self, patterns: "Iterable[str]") -> StagingPlan:
        """Resolve staging patterns against the current working tree and index.

        Raises:
            StagingError: If any pattern is invalid or selects nothing.
        """
        root = self._canonical_path
        ignore_manager = IgnoreFilterManager.from_repo(self._repo)
        tracked = {decode_bytes(p) for p in self._repo.open_index()}
        present = {p for p in tracked if os.path.lexists(root / p)}

        try:
            visible = scan_working_tree(
                root, lambda rel: bool(ignore_manager.is_ignored(rel))
            )
        except OSError as e:
            msg = f"Cannot scan working tree: {e}"
            raise StagingError(msg, path=root) from e

        resolver = PatternResolver(
            root, candidates=visible | present, missing=tracked - present
        )
        return resolver.resolve(patterns)

    def _apply_staging(self, plan: StagingPlan) -> None:
        """Write a resolved staging plan to the index in one index write.

        Raises:
            StagingError: If a file cannot be read.
        """
        root = self._canonical_path
        entries: dict[bytes, tuple[IndexEntry, Blob]] = {}
        for rel in sorted(plan.additions):
            full_path = root / rel
            try:
                st = os.lstat(full_path)
                blob = blob_from_path_and_stat(os.fsencode(full_path), st)
            except OSError as e:
                msg = f"Cannot read {rel}: {e}"
                raise StagingError(msg, pattern=rel, path=root) from e
            entries[rel.encode("utf-8")] = (index_entry_from_stat(st, blob.id), blob)

        index = self._repo.open_index()
        for path_bytes, (entry, blob) in entries.items():
            self._repo.object_store.add_object(blob)
            index[path_bytes] = entry
        for rel in plan.removals:
            path_bytes = rel.encode("utf-8")
            if path_bytes in index:
                del index[path_bytes]
        index.write()

    def _restore_index(self, paths: "Iterable[str]") -> None:
        """Reset index entries for paths to their HEAD state.

        Paths absent from HEAD are removed from the index. Working tree
        files are never touched.
        """
        head_tree = self._head_tree()
        index = self._repo.open_index()

        try:
            for rel in paths:
                path_bytes = rel.encode("utf-8")
                try:
                    if head_tree is None:
                        raise KeyError(path_bytes)
                    mode, blob_sha = tree_lookup_path(
                        self._repo.__getitem__, head_tree, path_bytes
                    )
                except KeyError:
                    # Not in HEAD - remove from index (was newly added)
                    if path_bytes in index:
                        del index[path_bytes]
                    continue

                blob_data: bytes = getattr(self._repo[blob_sha], "data", b"")
                index[path_bytes] = self._index_entry_for(
                    rel, mode, blob_sha, len(blob_data)
                )
        finally:
            index.write()

    def _index_entry_for(
        self, rel: str, mode: int, blob_sha: bytes, size: int
    ) -> IndexEntry:
        target_file = self._canonical_path / rel
        if not os.path.lexists(target_file):
            # Zeroed stat forces a content check on the next status
            return IndexEntry(
                ctime=(0, 0),
                mtime=(0, 0),
                dev=0,
                ino=0,
                mode=mode,
                uid=0,
                gid=0,
                size=size,
                sha=blob_sha,
                flags=0,
            )
        stat_info = target_file.lstat()
        # ctime/mtime are tuples of (seconds, nanoseconds)
        return IndexEntry(
            ctime=(int(stat_info.st_ctime), stat_info.st_ctime_ns % 1_000_000_000),
            mtime=(int(stat_info.st_mtime), stat_info.st_mtime_ns % 1_000_000_000),
            dev=stat_info.st_dev,
            ino=stat_info.st_ino,
            mode=mode,
            uid=stat_info.st_uid,
            gid=stat_info.st_gid,
            size=size,
            sha=blob_sha,
            flags=0,
        )

    def _head_tree(self) -> bytes | None:
        head = self._history.head()
        if head is None:
            return None
        return cast("Commit", self._repo[head]).tree

    def _write_commit(self, message: str) -> str:
        """Create a commit from the index and advance HEAD atomically.

        The commit object is written first, then HEAD is moved with a
        compare-and-swap against the HEAD captured before committing. If
        anything outside this API moved HEAD while the transaction was open,
        the swap fails and history keeps the other writer's commit only.

        Returns:
            The new commit id as a 40-character hex string.

        Raises:
            CommitError: If nothing is staged, the index has conflicts, the
                object database cannot be written, or HEAD moved.
        """
        root = self._canonical_path
        if self._has_conflicts():
            msg = "Cannot commit with unresolved conflicts in the index"
            raise CommitError(msg, path=root)

        head_before = self._history.head()
        index = self._repo.open_index()
        index_tree = index.commit(self._repo.object_store)
        if (head_before is None and len(index) == 0) or index_tree == self._head_tree():
            msg = "Nothing to commit: the index matches HEAD"
            raise CommitError(msg, path=root)

        parents = [head_before] if head_before is not None else []
        try:
            commit_sha = self._store_commit(index_tree, parents, message)
            if head_before is None:
                advanced = self._repo.refs.add_if_new(
                    b"HEAD",
                    commit_sha,
                    committer=self._author.as_identity(),
                    message=b"commit (initial): " + _subject(message),
                )
            else:
                advanced = self._repo.refs.set_if_equals(
                    b"HEAD",
                    head_before,
                    commit_sha,
                    committer=self._author.as_identity(),
                    message=b"commit: " + _subject(message),
                )
        except OSError as e:
            msg = f"Cannot write commit: {e}"
            raise CommitError(msg, path=root) from e

        commit_id = sha_to_str(commit_sha)
        if not advanced:
            expected = sha_to_str(head_before) if head_before is not None else "none"
            current = self._history.head()
            actual = sha_to_str(current) if current is not None else "none"
            msg = (
                f"Concurrent modification detected: expected HEAD={expected}, "
                f"got HEAD={actual}"
            )
            raise CommitError(msg, path=root, details=f"Commit SHA: {commit_id}")

        return commit_id

    def _store_commit(self, tree: bytes, parents: list[bytes], message: str) -> bytes:
        """Write a commit object without moving any ref.

        Returns:
            The commit id as hex bytes.
        """
        identity = self._author.as_identity()
        timestamp = int(time.time())
        tz_offset = time.localtime(timestamp).tm_gmtoff

        commit = Commit()
        commit.tree = tree
        commit.parents = parents
        commit.author = commit.committer = identity
        commit.author_time = commit.commit_time = timestamp
        commit.author_timezone = commit.commit_timezone = tz_offset
        commit.encoding = b"UTF-8"
        commit.message = message.encode("utf-8")
        self._repo.object_store.add_object(commit)
        return commit.id

    # =========================================================================
    # History
    # =========================================================================

    def get_history(self, limit: int = 0) -> list[CommitInfo]:
        """Get commits reachable from HEAD, most recent first.

        Args:
            limit: Maximum number of commits; 0 means unlimited.

        Returns:
            List of CommitInfo; empty for a repository without commits.
        """
        return self._history.log(limit=limit)

    def get_file_history(self, relative_path: str | Path, limit: int = 0) -> list[CommitInfo]:
        """Get commits that changed one file, most recent first.

        Args:
            relative_path: Repository-relative path of the file.
            limit: Maximum number of commits; 0 means unlimited.

        Returns:
            List of CommitInfo; empty for an unknown file.
        """
        return self._history.log(path=relative_path, limit=limit)

    def get_file_differences(self, commit_a: str, commit_b: str) -> bytes:
        """Get a unified diff of all files changed between two commits.

        Args:
            commit_a: The "before" commit reference.
            commit_b: The "after" commit reference.

        Returns:
            Git-style unified diff bytes.

        Raises:
            HistoryQueryError: If either reference does not resolve to a commit.
        """
        return self._history.diff(commit_a, commit_b)

    def get_file_at_commit(self, relative_path: str | Path, commit: str) -> bytes | None:
        """Get the content of a file as of a commit.

        Args:
            relative_path: Repository-relative path of the file.
            commit: Commit reference.

        Returns:
            File content, or None if the file does not exist at that commit.

        Raises:
            HistoryQueryError: If the reference does not resolve to a commit.
        """
        return self._history.file_at(relative_path, commit)

    def get_history_stream(self) -> "Iterator[CommitInfo]":
        """Lazily enumerate the history, most recent first.

        Each call returns an independent one-shot generator with its own
        read handle, so streams can outlive close() on this handle.

        Returns:
            Generator of CommitInfo.
        """
        return stream_history(self._canonical_path, logger=self._logger)


def initialize_repository(
    path: Path | str,
    author: AuthorConfiguration | None = None,
    *,
    locks: LockRegistry | None = None,
    logger: "FilteringBoundLogger | None" = None,
) -> Repository:
    """Create or open a versioned repository.

    Args:
        path: Repository directory. Missing parents are created.
        author: Identity for commits. If None, resolved from the
            environment and git config.
        locks: Lock registry; defaults to the process-wide registry.
        logger: Optional logger; events are discarded when omitted.

    Returns:
        An open Repository handle.

    Raises:
        InitializationError: If the path cannot be created or opened.
    """
    if author is None:
        name, email = resolve_author_identity()
        author = AuthorConfiguration(name=name, email=email)
    return Repository(path, author, locks=locks, logger=logger)
