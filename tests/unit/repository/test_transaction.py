"""Tests for the Transaction lifecycle."""

from collections.abc import Callable
from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from planvault.exceptions import CommitError, StagingError, TransactionFinalizedError
from planvault.repository import (
    AuthorConfiguration,
    LockRegistry,
    Repository,
    TransactionProtocol,
    TransactionState,
    initialize_repository,
)

WriteFunc = Callable[..., Path]


class TestLifecycle:
    def test_begins_open_and_holds_lock(
        self, repository: Repository, locks: LockRegistry
    ) -> None:
        tx = repository.begin()
        try:
            assert tx.state is TransactionState.OPEN
            assert tx.is_open is True
            assert locks.is_locked(repository.canonical_path) is True
        finally:
            tx.cancel()

    def test_satisfies_protocol(self, repository: Repository) -> None:
        with repository.begin() as tx:
            assert isinstance(tx, TransactionProtocol)

    def test_commit_finalizes(
        self, repository: Repository, locks: LockRegistry, write: WriteFunc
    ) -> None:
        write("a.txt")
        tx = repository.begin()
        tx.stage(["a.txt"])
        _ = tx.commit("add")

        assert tx.state is TransactionState.COMMITTED
        assert tx.is_open is False
        assert locks.is_locked(repository.canonical_path) is False

    def test_cancel_finalizes(self, repository: Repository, locks: LockRegistry) -> None:
        tx = repository.begin()
        tx.cancel()

        assert tx.state is TransactionState.CANCELED
        assert locks.is_locked(repository.canonical_path) is False

    def test_cancel_is_idempotent(self, repository: Repository) -> None:
        tx = repository.begin()
        tx.cancel()
        tx.cancel()

        assert tx.state is TransactionState.CANCELED

    def test_cancel_after_commit_is_noop(
        self, repository: Repository, write: WriteFunc
    ) -> None:
        write("a.txt")
        tx = repository.begin()
        tx.stage(["a.txt"])
        _ = tx.commit("add")
        tx.cancel()

        assert tx.state is TransactionState.COMMITTED

    def test_context_exit_cancels_on_exception(
        self, repository: Repository, locks: LockRegistry, write: WriteFunc
    ) -> None:
        write("a.txt")

        with pytest.raises(RuntimeError), repository.begin() as tx:
            tx.stage(["a.txt"])
            raise RuntimeError("boom")

        assert tx.state is TransactionState.CANCELED
        assert locks.is_locked(repository.canonical_path) is False
        assert repository.status().staged_files == ()

    def test_repr_shows_state(self, repository: Repository) -> None:
        with repository.begin() as tx:
            assert "state='open'" in repr(tx)


class TestFinalizedOperations:
    @pytest.mark.parametrize("operation", ["stage", "commit"])
    def test_rejected_after_cancel(self, repository: Repository, operation: str) -> None:
        tx = repository.begin()
        tx.cancel()

        with pytest.raises(TransactionFinalizedError) as exc_info:
            if operation == "stage":
                _ = tx.stage(["."])
            else:
                _ = tx.commit("late")

        assert exc_info.value.state == "canceled"

    def test_rejected_after_commit(self, repository: Repository, write: WriteFunc) -> None:
        write("a.txt")
        tx = repository.begin()
        tx.stage(["a.txt"])
        _ = tx.commit("add")

        with pytest.raises(TransactionFinalizedError, match="committed"):
            _ = tx.stage(["a.txt"])


class TestStage:
    def test_accepts_single_string(self, repository: Repository, write: WriteFunc) -> None:
        write("a.txt")

        with repository.begin() as tx:
            assert tx.stage("a.txt") == {"a.txt"}

    def test_accumulates_staged_paths(
        self, repository: Repository, write: WriteFunc
    ) -> None:
        write("a.txt")
        write("b.txt")

        with repository.begin() as tx:
            tx.stage(["a.txt"])
            tx.stage(["b.txt"])
            assert tx.staged_paths == {"a.txt", "b.txt"}

    def test_staging_error_keeps_transaction_open(
        self, repository: Repository, write: WriteFunc
    ) -> None:
        write("a.txt")

        with repository.begin() as tx:
            with pytest.raises(StagingError):
                _ = tx.stage(["missing.txt"])

            assert tx.is_open is True
            assert tx.stage(["a.txt"]) == {"a.txt"}

    def test_bad_pattern_stages_nothing(
        self, repository: Repository, write: WriteFunc
    ) -> None:
        write("a.txt")

        with repository.begin() as tx:
            with pytest.raises(StagingError):
                _ = tx.stage(["a.txt", "../outside"])

            assert repository.status().staged_files == ()

    def test_logs_staging(
        self,
        repo_path: Path,
        locks: LockRegistry,
        write: WriteFunc,
        mocker: MockerFixture,
    ) -> None:
        logger = mocker.MagicMock()
        write("a.txt")

        with (
            initialize_repository(
                repo_path, AuthorConfiguration("a", "b@c"), locks=locks, logger=logger
            ) as repo,
            repo.begin() as tx,
        ):
            tx.stage(["a.txt"])

        logger.debug.assert_any_call("transaction_staged", added=1, removed=0)
        logger.debug.assert_any_call("transaction_canceled")


class TestCommitFailure:
    def test_rolls_back_staged_changes(
        self,
        repository: Repository,
        locks: LockRegistry,
        write: WriteFunc,
        mocker: MockerFixture,
    ) -> None:
        write("a.txt")
        _ = mocker.patch.object(
            Repository, "_write_commit", side_effect=CommitError("disk full")
        )

        tx = repository.begin()
        tx.stage(["a.txt"])
        with pytest.raises(CommitError, match="disk full"):
            _ = tx.commit("add")

        assert tx.state is TransactionState.CANCELED
        assert locks.is_locked(repository.canonical_path) is False
        assert repository.status().untracked_files == ("a.txt",)
