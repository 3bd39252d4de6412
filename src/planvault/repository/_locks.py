"""Per-repository transaction locks.

This module provides the LockRegistry class, which hands out one mutex per
canonical repository path. Two handles that reach the same directory through
different paths (for example one direct, one through a symlink) receive the
same lock, while unrelated repositories never contend.

Example:
    >>> from planvault.repository import LockRegistry
    >>> registry = LockRegistry.get_instance()
    >>> lock = registry.lock_for(Path("/data/planner"))
    >>> lock is registry.lock_for(Path("/data/../data/planner"))
    True
"""

import os
import threading
from pathlib import Path
from typing import ClassVar


def canonicalize(path: Path | str) -> Path:
    """Resolve a path to its absolute, symlink-free form.

    Args:
        path: The path to canonicalize. Need not exist.

    Returns:
        The canonical absolute path.
    """
    return Path(os.path.realpath(Path(path).expanduser()))


class LockRegistry:
    """Thread-safe registry mapping canonical repository paths to locks.

    Locks are created lazily on first request and are never removed, so the
    registry grows with the number of distinct repositories opened rather
    than with the number of operations.

    Use get_instance() to obtain the process-wide registry, or construct a
    private registry and pass it to initialize_repository() to isolate a
    group of handles.

    Attributes:
        _instance: Class-level process-wide instance.
        _instance_lock: Class-level lock guarding singleton creation.
    """

    _instance: ClassVar["LockRegistry | None"] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    __slots__ = ("_guard", "_locks")

    def __init__(self) -> None:
        self._guard: threading.Lock = threading.Lock()
        self._locks: dict[Path, threading.Lock] = {}

    @classmethod
    def get_instance(cls) -> "LockRegistry":  # noqa: UP037
        """Get the process-wide registry.

        Thread-safe using double-checked locking.

        Returns:
            The shared LockRegistry instance.
        """
        instance = cls._instance
        if instance is None:
            with cls._instance_lock:
                instance = cls._instance
                if instance is None:
                    instance = cls()
                    cls._instance = instance
        return instance

    @classmethod
    def _reset_instance(cls) -> None:
        """Reset the process-wide registry (for testing only)."""
        with cls._instance_lock:
            cls._instance = None

    def lock_for(self, path: Path | str) -> threading.Lock:
        """Return the lock for a repository path, creating it if needed.

        Args:
            path: Repository path, canonicalized before lookup.

        Returns:
            The lock shared by every handle on the same physical directory.
        """
        key = canonicalize(path)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def is_locked(self, path: Path | str) -> bool:
        """Check whether a transaction currently holds the lock for a path.

        Args:
            path: Repository path, canonicalized before lookup.

        Returns:
            True if the lock exists and is held.
        """
        key = canonicalize(path)
        with self._guard:
            lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        key = canonicalize(path)
        with self._guard:
            return key in self._locks
