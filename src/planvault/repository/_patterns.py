"""Staging pattern resolution.

This module turns the patterns passed to Transaction.stage() into a concrete
set of index additions and removals. Patterns come in three kinds:

- ``"."`` selects every file in the working tree, plus the removal of every
  tracked file that no longer exists.
- Globs (containing ``*``, ``?`` or ``[``) are matched segment by segment
  against repository-relative paths. ``*`` never crosses a ``/``, and a
  ``**`` segment matches zero or more directories, so ``"*.txt"`` only
  selects top-level text files.
- Anything else is an explicit path. A file is added, a directory adds
  everything below it, and a path that only exists in the index is staged
  as a removal.

All patterns are resolved before the index is touched, so a bad pattern
never leaves a half-applied staging operation behind.
"""

import os
import posixpath
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Final

from planvault.exceptions import StagingError

_GLOB_CHARS: Final = frozenset("*?[")
_GIT_DIR_NAME: Final = ".git"
_ALL: Final = "."


class PatternKind(StrEnum):
    """Classification of a staging pattern."""

    ALL = "all"
    GLOB = "glob"
    PATH = "path"


@dataclass(frozen=True, slots=True)
class StagingPlan:
    """Resolved result of a set of staging patterns.

    Attributes:
        additions: Repository-relative paths whose working tree content is
            written to the index.
        removals: Repository-relative paths removed from the index.
    """

    additions: frozenset[str]
    removals: frozenset[str]

    def __bool__(self) -> bool:
        return bool(self.additions or self.removals)

    @property
    def paths(self) -> frozenset[str]:
        """All paths touched by the plan."""
        return self.additions | self.removals


def classify_pattern(pattern: str) -> PatternKind:
    """Classify a normalized staging pattern.

    Args:
        pattern: Repository-relative pattern, already normalized.

    Returns:
        The pattern kind.
    """
    if pattern == _ALL:
        return PatternKind.ALL
    if any(ch in _GLOB_CHARS for ch in pattern):
        return PatternKind.GLOB
    return PatternKind.PATH


def match_glob(pattern: str, path: str) -> bool:
    """Match a repository-relative path against a glob pattern.

    Args:
        pattern: Glob pattern using ``/`` separators.
        path: Repository-relative POSIX path.

    Returns:
        True if every path segment matches its pattern segment.
    """
    return _match_segments(pattern.split("/"), path.split("/"))


def _match_segments(pattern_parts: list[str], path_parts: list[str]) -> bool:
    if not pattern_parts:
        return not path_parts

    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        return any(
            _match_segments(rest, path_parts[i:]) for i in range(len(path_parts) + 1)
        )
    if not path_parts:
        return False
    return fnmatchcase(path_parts[0], head) and _match_segments(rest, path_parts[1:])


def normalize_pattern(pattern: str, root: Path) -> str:
    """Normalize a pattern to a repository-relative POSIX string.

    Absolute paths are accepted when they point inside the repository.

    Args:
        pattern: Raw pattern as passed by the caller.
        root: Canonical repository root.

    Returns:
        The normalized pattern, ``"."`` for the whole working tree.

    Raises:
        StagingError: If the pattern is empty, escapes the repository,
            or points into the .git directory.
    """
    if not pattern or not pattern.strip():
        msg = "Empty staging pattern"
        raise StagingError(msg, pattern=pattern, path=root)

    candidate = pattern.replace(os.sep, "/")
    if Path(pattern).is_absolute():
        # Only the directory part is resolved, so a symlinked file stays a link
        raw = Path(pattern)
        absolute = Path(os.path.realpath(raw.parent)) / raw.name
        if not absolute.is_relative_to(root):
            msg = f"Pattern is outside the repository: {pattern}"
            raise StagingError(msg, pattern=pattern, path=root)
        candidate = absolute.relative_to(root).as_posix() or _ALL

    normalized = posixpath.normpath(candidate)
    if normalized == ".." or normalized.startswith("../"):
        msg = f"Pattern is outside the repository: {pattern}"
        raise StagingError(msg, pattern=pattern, path=root)

    if normalized.split("/", 1)[0] == _GIT_DIR_NAME:
        msg = f"Cannot stage files inside {_GIT_DIR_NAME}/: {pattern}"
        raise StagingError(msg, pattern=pattern, path=root)

    return normalized


def scan_working_tree(
    root: Path, is_ignored: Callable[[str], bool] | None = None
) -> frozenset[str]:
    """List files in the working tree.

    Directories named .git are skipped at every level. Symlinks are
    reported as files and never followed.

    Args:
        root: Canonical repository root.
        is_ignored: Optional predicate for repository-relative paths that
            should be left out.

    Returns:
        Repository-relative POSIX paths of every visible file.
    """
    found: set[str] = set()
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d != _GIT_DIR_NAME]
        base = Path(dirpath).relative_to(root)
        for name in filenames:
            rel = (base / name).as_posix()
            if is_ignored is not None and is_ignored(rel):
                continue
            found.add(rel)
    return frozenset(found)


class PatternResolver:
    """Resolves staging patterns against a working tree and index snapshot.

    Attributes:
        root: Canonical repository root.
        candidates: Files eligible for addition through ``"."`` or a glob:
            visible untracked files plus every tracked file still on disk.
        missing: Tracked files that no longer exist in the working tree.
    """

    __slots__ = ("candidates", "missing", "root")

    def __init__(
        self,
        root: Path,
        *,
        candidates: Iterable[str],
        missing: Iterable[str],
    ) -> None:
        self.root: Path = root
        self.candidates: frozenset[str] = frozenset(candidates)
        self.missing: frozenset[str] = frozenset(missing)

    def resolve(self, patterns: Iterable[str]) -> StagingPlan:
        """Resolve every pattern into one staging plan.

        Args:
            patterns: Patterns as passed to Transaction.stage().

        Returns:
            The combined plan.

        Raises:
            StagingError: If no patterns are given or any pattern selects
                nothing.
        """
        pattern_list = list(patterns)
        if not pattern_list:
            msg = "No staging patterns given"
            raise StagingError(msg, path=self.root)

        additions: set[str] = set()
        removals: set[str] = set()
        for raw in pattern_list:
            added, removed = self._resolve_one(raw)
            if not added and not removed:
                msg = f"Pattern matched no files: {raw}"
                raise StagingError(msg, pattern=raw, path=self.root)
            additions |= added
            removals |= removed

        return StagingPlan(
            additions=frozenset(additions), removals=frozenset(removals - additions)
        )

    def _resolve_one(self, raw: str) -> tuple[set[str], set[str]]:
        pattern = normalize_pattern(raw, self.root)
        kind = classify_pattern(pattern)

        if kind is PatternKind.ALL:
            return set(self.candidates), set(self.missing)

        if kind is PatternKind.GLOB:
            return (
                {p for p in self.candidates if match_glob(pattern, p)},
                {p for p in self.missing if match_glob(pattern, p)},
            )

        if pattern in self.candidates or self._is_unlisted_file(pattern):
            # Explicit files are staged even when an ignore rule covers them
            return {pattern}, set()

        prefix = pattern + "/"
        return (
            {p for p in self.candidates if p.startswith(prefix)},
            {p for p in self.missing if p == pattern or p.startswith(prefix)},
        )

    def _is_unlisted_file(self, pattern: str) -> bool:
        target = self.root / pattern
        return target.is_symlink() or target.is_file()
