"""Read-only history and diff queries.

This module provides the HistoryReader class, which answers log, file log,
diff and file content queries against a repository's commit graph. None of
these queries touch the index or the transaction lock, so they may run
while a transaction is open.
"""

import posixpath
from pathlib import Path
from typing import TYPE_CHECKING, Final, cast

from dulwich.diff_tree import (
    CHANGE_ADD,
    CHANGE_DELETE,
    CHANGE_MODIFY,
    CHANGE_RENAME,
    RenameDetector,
    tree_changes,
)
from dulwich.object_store import tree_lookup_path
from dulwich.objects import Blob, Commit
from dulwich.patch import is_binary, unified_diff
from dulwich.repo import Repo

from planvault.exceptions import HistoryQueryError
from planvault.repository._models import CommitInfo
from planvault.utils._git import (
    SHA_HEX_LENGTH,
    decode_bytes,
    parse_identity,
    parse_timestamp,
    sha_to_str,
)
from planvault.utils._logging import create_null_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

    from dulwich.diff_tree import TreeChange
    from structlog.typing import FilteringBoundLogger

# Similarity threshold for rename detection (0-100 scale for dulwich)
_RENAME_THRESHOLD: Final = 60

# Minimum length for abbreviated SHA resolution
_MIN_SHA_ABBREV_LENGTH: Final = 4

_DIFF_CONTEXT_LINES: Final = 3

_HEX_DIGITS: Final = frozenset("0123456789abcdef")


def commit_to_info(commit: Commit) -> CommitInfo:
    """Convert a dulwich commit object to CommitInfo.

    Args:
        commit: The commit object.

    Returns:
        CommitInfo populated from the commit's author fields.
    """
    author_name, author_email = parse_identity(cast("bytes", commit.author))
    timestamp = parse_timestamp(
        cast("int", commit.author_time), cast("int", commit.author_timezone)
    )
    return CommitInfo(
        id=sha_to_str(commit.id),
        author=author_name,
        email=author_email,
        timestamp=timestamp,
        message=decode_bytes(cast("bytes", commit.message)),
        parent_ids=tuple(sha_to_str(p) for p in cast("list[bytes]", commit.parents)),
    )


def normalize_relative_path(relative_path: str | Path) -> str:
    """Normalize a repository-relative path for tree lookups.

    Args:
        relative_path: Path relative to the repository root.

    Returns:
        POSIX path without leading "./" segments.
    """
    text = relative_path.as_posix() if isinstance(relative_path, Path) else relative_path
    return posixpath.normpath(text.replace("\\", "/")).lstrip("/")


class HistoryReader:
    """Answers read-only queries against a repository's commit graph.

    The reader borrows a dulwich Repo; it never closes it.

    Attributes:
        repo: The underlying dulwich repository.
    """

    __slots__ = ("_logger", "repo")

    def __init__(
        self, repo: Repo, *, logger: "FilteringBoundLogger | None" = None
    ) -> None:
        self.repo: Repo = repo
        self._logger: FilteringBoundLogger = (
            logger if logger is not None else create_null_logger()
        )

    # =========================================================================
    # Commit Log
    # =========================================================================

    def head(self) -> bytes | None:
        """Get the commit id HEAD points at.

        Returns:
            HEAD as hex bytes, or None on an unborn branch.
        """
        try:
            return self.repo.head()
        except KeyError:
            # No commits yet (empty repository)
            return None

    def iter_log(
        self, *, path: str | Path | None = None, limit: int = 0
    ) -> "Iterator[CommitInfo]":
        """Walk the history from HEAD, newest first.

        Args:
            path: Optional repository-relative path. Only commits that
                changed this path are yielded.
            limit: Maximum number of commits to yield; 0 means unlimited.

        Yields:
            CommitInfo for each commit, most recent first.
        """
        head = self.head()
        if head is None:
            return

        walker_kwargs: dict[str, object] = {
            "include": [head],
            "max_entries": limit if limit > 0 else None,
        }
        if path is not None:
            walker_kwargs["paths"] = [normalize_relative_path(path).encode("utf-8")]

        walker = self.repo.get_walker(**walker_kwargs)  # pyright: ignore[reportArgumentType]
        for entry in walker:
            yield commit_to_info(entry.commit)

    def log(
        self, *, path: str | Path | None = None, limit: int = 0
    ) -> list[CommitInfo]:
        """Collect the history from HEAD, newest first.

        Args:
            path: Optional repository-relative path filter.
            limit: Maximum number of commits to return; 0 means unlimited.

        Returns:
            List of CommitInfo, empty for an unborn branch or unknown path.
        """
        return list(self.iter_log(path=path, limit=limit))

    # =========================================================================
    # Reference Resolution
    # =========================================================================

    def resolve(self, reference: str) -> bytes:
        """Resolve a commit reference to a full commit id.

        Full 40-character ids and unambiguous abbreviations of at least four
        hex characters are accepted.

        Args:
            reference: Commit reference as a hex string.

        Returns:
            The commit id as 40 hex bytes.

        Raises:
            HistoryQueryError: If the reference is malformed, unknown,
                ambiguous, or does not name a commit.
        """
        sha = reference.strip().lower()
        if len(sha) < _MIN_SHA_ABBREV_LENGTH or not set(sha) <= _HEX_DIGITS:
            msg = f"Invalid commit reference: {reference!r}"
            raise HistoryQueryError(msg, reference=reference)
        if len(sha) > SHA_HEX_LENGTH:
            msg = f"Invalid commit reference: {reference!r}"
            raise HistoryQueryError(msg, reference=reference)

        if len(sha) == SHA_HEX_LENGTH:
            candidate = sha.encode("ascii")
            if self._is_commit(candidate):
                return candidate
            msg = f"Commit not found: {reference}"
            raise HistoryQueryError(msg, reference=reference)

        # Abbreviated SHA - search for matches
        matches = [
            obj_sha
            for obj_sha in self.repo.object_store
            if sha_to_str(obj_sha).startswith(sha) and self._is_commit(obj_sha)
        ]

        if not matches:
            msg = f"Commit not found: {reference}"
            raise HistoryQueryError(msg, reference=reference)
        if len(matches) > 1:
            msg = f"Ambiguous commit reference: {reference} (matches {len(matches)} commits)"
            raise HistoryQueryError(msg, reference=reference)

        return sha_to_str(matches[0]).encode("ascii")

    def _is_commit(self, sha: bytes) -> bool:
        try:
            return isinstance(self.repo[sha], Commit)
        except KeyError:
            return False

    def _get_commit(self, reference: str) -> Commit:
        return cast("Commit", self.repo[self.resolve(reference)])

    # =========================================================================
    # Content and Diff
    # =========================================================================

    def file_at(self, relative_path: str | Path, reference: str) -> bytes | None:
        """Get the content of a file as of a commit.

        Args:
            relative_path: Repository-relative path of the file.
            reference: Commit reference.

        Returns:
            File content, or None if the file does not exist at that commit.

        Raises:
            HistoryQueryError: If the reference does not resolve.
        """
        commit = self._get_commit(reference)
        path_bytes = normalize_relative_path(relative_path).encode("utf-8")
        try:
            _, blob_sha = tree_lookup_path(self.repo.__getitem__, commit.tree, path_bytes)
        except KeyError:
            # File does not exist at this commit
            return None

        blob = self.repo[blob_sha]
        if not isinstance(blob, Blob):
            # Path names a directory
            return None
        return blob.data

    def diff(self, reference_a: str, reference_b: str) -> bytes:
        """Generate a unified diff of every file changed between two commits.

        Args:
            reference_a: The "before" commit reference.
            reference_b: The "after" commit reference.

        Returns:
            Git-style unified diff; empty when the trees are identical.

        Raises:
            HistoryQueryError: If either reference does not resolve.
        """
        tree_a = self._get_commit(reference_a).tree
        tree_b = self._get_commit(reference_b).tree

        rename_detector = RenameDetector(
            self.repo.object_store, rename_threshold=_RENAME_THRESHOLD
        )
        changes = tree_changes(
            self.repo.object_store, tree_a, tree_b, rename_detector=rename_detector
        )
        return b"".join(self._format_tree_change(change) for change in changes)

    def _blob_data(self, sha: bytes | None) -> bytes:
        if not sha:
            return b""
        blob = self.repo[sha]
        return blob.data if isinstance(blob, Blob) else b""

    def _format_tree_change(self, change: "TreeChange") -> bytes:
        old_path = decode_bytes(change.old.path) if change.old and change.old.path else None
        new_path = decode_bytes(change.new.path) if change.new and change.new.path else None

        old_content = self._blob_data(change.old.sha if change.old else None)
        new_content = self._blob_data(change.new.sha if change.new else None)

        if change.type == CHANGE_RENAME:
            from_path = f"a/{old_path}"
            to_path = f"b/{new_path}"
            header = (
                f"diff --git a/{old_path} b/{new_path}\n"
                f"rename from {old_path}\n"
                f"rename to {new_path}\n"
            )
        elif change.type == CHANGE_ADD:
            from_path = "/dev/null"
            to_path = f"b/{new_path}"
            header = (
                f"diff --git a/{new_path} b/{new_path}\n"
                f"new file mode {change.new.mode:o}\n"
            )
        elif change.type == CHANGE_DELETE:
            from_path = f"a/{old_path}"
            to_path = "/dev/null"
            header = (
                f"diff --git a/{old_path} b/{old_path}\n"
                f"deleted file mode {change.old.mode:o}\n"
            )
        else:
            # CHANGE_MODIFY
            path_str = new_path or old_path or ""
            from_path = f"a/{path_str}"
            to_path = f"b/{path_str}"
            header = f"diff --git a/{path_str} b/{path_str}\n"
            if change.old.mode != change.new.mode:
                header += f"old mode {change.old.mode:o}\nnew mode {change.new.mode:o}\n"

        if is_binary(old_content) or is_binary(new_content):
            return (header + f"Binary files {from_path} and {to_path} differ\n").encode()

        diff_lines = unified_diff(
            old_content.splitlines(keepends=True),
            new_content.splitlines(keepends=True),
            fromfile=from_path.encode(),
            tofile=to_path.encode(),
            n=_DIFF_CONTEXT_LINES,
        )
        body = b"".join(diff_lines)
        if not body and change.type == CHANGE_MODIFY and change.old.mode == change.new.mode:
            return b""
        return header.encode() + body


def stream_history(
    path: Path, *, logger: "FilteringBoundLogger | None" = None
) -> "Iterator[CommitInfo]":
    """Lazily enumerate a repository's history with a private read handle.

    The generator opens its own dulwich Repo on first iteration and closes
    it when exhausted, closed, or garbage-collected.

    Args:
        path: Repository root.
        logger: Optional logger for open/close events.

    Yields:
        CommitInfo for each commit, most recent first.
    """
    log: FilteringBoundLogger = logger if logger is not None else create_null_logger()
    repo = Repo(str(path))
    log.debug("history_stream_opened", path=str(path))
    count = 0
    try:
        for info in HistoryReader(repo, logger=log).iter_log():
            count += 1
            yield info
    finally:
        repo.close()
        log.debug("history_stream_closed", path=str(path), commits=count)
