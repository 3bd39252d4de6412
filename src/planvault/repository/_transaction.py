"""Transactions over a versioned repository.

A Transaction is the exclusive right to add the next commit to one
repository. It is created by Repository.begin() already holding the lock for
the repository's canonical path, and gives it back exactly once, when it
moves to COMMITTED or CANCELED.
"""

import threading
from types import TracebackType
from typing import TYPE_CHECKING, Self

from planvault.exceptions import TransactionFinalizedError
from planvault.repository._models import TransactionState

if TYPE_CHECKING:
    from collections.abc import Iterable

    from structlog.typing import FilteringBoundLogger

    from planvault.repository._repository import Repository


class Transaction:
    """A single unit of change: stage, then commit or cancel.

    The transaction is a context manager. Leaving the block while the
    transaction is still open cancels it, so an exception between stage()
    and commit() never leaves the repository locked.

    Attributes:
        state: Current lifecycle state.
    """

    __slots__ = ("_lock", "_logger", "_repository", "_staged", "_state")

    def __init__(
        self,
        repository: "Repository",
        lock: threading.Lock,
        *,
        logger: "FilteringBoundLogger",
    ) -> None:
        """Bind a transaction to a repository and an already-held lock.

        Args:
            repository: The repository this transaction writes to.
            lock: The repository lock, acquired by the caller.
            logger: Logger for lifecycle events.
        """
        self._repository: Repository = repository
        self._lock: threading.Lock = lock
        self._logger: FilteringBoundLogger = logger
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

    def __repr__(self) -> str:
        return (
            f"Transaction(path={str(self._repository.canonical_path)!r}, "
            f"state={self._state.value!r})"
        )

    @property
    def state(self) -> TransactionState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_open(self) -> bool:
        """True until the transaction is committed or canceled."""
        return self._state is TransactionState.OPEN

    @property
    def staged_paths(self) -> frozenset[str]:
        """Repository-relative paths staged through this transaction so far."""
        return frozenset(self._staged)

    def _ensure_open(self, operation: str) -> None:
        if self._state is not TransactionState.OPEN:
            msg = f"Cannot {operation}: transaction is already {self._state.value}"
            raise TransactionFinalizedError(msg, state=self._state.value)

    def _finalize(self, state: TransactionState) -> None:
        self._state = state
        self._lock.release()

    def stage(self, patterns: "Iterable[str] | str") -> frozenset[str]:
        """Stage files matching patterns for the next commit.

        Args:
            patterns: ``"."``, glob patterns, or explicit repository-relative
                paths. A single string is treated as one pattern.

        Returns:
            Repository-relative paths added to or removed from the index.

        Raises:
            TransactionFinalizedError: If the transaction is not open.
            StagingError: If a pattern is invalid, matches nothing, or a file
                cannot be read. The transaction stays open.
        """
        self._ensure_open("stage")
        pattern_list = [patterns] if isinstance(patterns, str) else list(patterns)

        plan = self._repository._resolve_staging(pattern_list)  # noqa: SLF001
        self._repository._apply_staging(plan)  # noqa: SLF001
        self._staged |= plan.paths

        self._logger.debug(
            "transaction_staged",
            added=len(plan.additions),
            removed=len(plan.removals),
        )
        return plan.paths

    def commit(self, message: str) -> str:
        """Commit everything staged and release the lock.

        Any failure cancels the transaction: this transaction's staged
        changes are rolled back and the lock is released.

        Args:
            message: Commit message.

        Returns:
            The new commit id as a 40-character hex string.

        Raises:
            TransactionFinalizedError: If the transaction is not open.
            CommitError: If nothing is staged or the commit cannot be written.
        """
        self._ensure_open("commit")

        committed = False
        try:
            commit_id = self._repository._write_commit(message)  # noqa: SLF001
            committed = True
        except Exception as e:
            self._logger.warning("commit_failed", error=str(e))
            raise
        finally:
            if committed:
                self._finalize(TransactionState.COMMITTED)
            else:
                try:
                    self._rollback()
                finally:
                    self._finalize(TransactionState.CANCELED)

        self._logger.info("transaction_committed", commit=commit_id)
        return commit_id

    def cancel(self) -> None:
        """Discard this transaction's staged changes and release the lock.

        Working tree files are untouched. Calling cancel() on a committed or
        canceled transaction does nothing.
        """
        if self._state is not TransactionState.OPEN:
            return

        try:
            self._rollback()
        finally:
            self._finalize(TransactionState.CANCELED)
        self._logger.debug("transaction_canceled")

    def _rollback(self) -> None:
        if self._staged:
            self._repository._restore_index(sorted(self._staged))  # noqa: SLF001
            self._staged.clear()
