"""Consumer tests for FakeRepository."""

from pathlib import Path

import pytest

from planvault.exceptions import (
    CommitError,
    HistoryQueryError,
    StagingError,
    TransactionFinalizedError,
)
from planvault.repository import (
    FakeRepository,
    RepositoryProtocol,
    TransactionProtocol,
    TransactionState,
)


def _commit(repo: FakeRepository, files: dict[str, bytes], message: str) -> str:
    for path, content in files.items():
        repo.write_file(path, content)
    with repo.begin() as tx:
        tx.stage(list(files))
        return tx.commit(message)


# =============================================================================
# Protocol Conformance Tests
# =============================================================================


class TestFakeRepositoryProtocolConformance:
    def test_isinstance_repository_protocol_returns_true(self) -> None:
        assert isinstance(FakeRepository(), RepositoryProtocol) is True

    def test_transaction_satisfies_protocol(self) -> None:
        with FakeRepository().begin() as tx:
            assert isinstance(tx, TransactionProtocol) is True

    def test_default_paths(self) -> None:
        repo = FakeRepository()
        assert repo.root == Path("/fake/planner")
        assert repo.canonical_path == repo.path


# =============================================================================
# Context Manager Tests
# =============================================================================


class TestFakeRepositoryContextManager:
    def test_enter_returns_self(self) -> None:
        repo = FakeRepository()
        with repo as ctx:
            assert ctx is repo

    def test_exit_closes(self) -> None:
        with FakeRepository() as repo:
            pass
        assert repo.closed is True


# =============================================================================
# Status Tests
# =============================================================================


class TestFakeRepositoryStatus:
    def test_clean_when_empty(self) -> None:
        repo = FakeRepository()
        assert repo.has_changes() is False

    def test_untracked_then_staged_then_clean(self) -> None:
        repo = FakeRepository()
        repo.write_file("a.txt", b"a")
        assert repo.status().untracked_files == ("a.txt",)

        tx = repo.begin()
        tx.stage(["a.txt"])
        assert repo.status().staged_files == ("a.txt",)

        _ = tx.commit("add")
        assert repo.status().is_clean is True

    def test_modified_after_commit(self) -> None:
        repo = FakeRepository()
        _ = _commit(repo, {"a.txt": b"one"}, "first")
        repo.write_file("a.txt", b"two")

        assert repo.status().modified_files == ("a.txt",)


# =============================================================================
# Transaction Tests
# =============================================================================


class TestFakeTransaction:
    def test_commit_records_history(self) -> None:
        repo = FakeRepository()
        first = _commit(repo, {"a.txt": b"one"}, "first")
        second = _commit(repo, {"a.txt": b"two"}, "second")

        history = repo.get_history()

        assert [c.id for c in history] == [second, first]
        assert history[0].parent_ids == (first,)
        assert history[0].author == "Fake Author"
        assert len(first) == 40

    def test_commit_releases_lock(self) -> None:
        repo = FakeRepository()
        _ = _commit(repo, {"a.txt": b"one"}, "first")
        assert repo.lock.locked() is False

    def test_empty_commit_cancels(self) -> None:
        repo = FakeRepository()
        tx = repo.begin()

        with pytest.raises(CommitError):
            _ = tx.commit("empty")

        assert tx.state is TransactionState.CANCELED
        assert repo.lock.locked() is False

    def test_cancel_restores_index(self) -> None:
        repo = FakeRepository()
        _ = _commit(repo, {"a.txt": b"one"}, "first")
        repo.write_file("a.txt", b"two")
        repo.write_file("b.txt", b"new")

        with repo.begin() as tx:
            tx.stage(["."])

        assert repo.index == {"a.txt": b"one"}

    def test_stages_deletions(self) -> None:
        repo = FakeRepository()
        _ = _commit(repo, {"a.txt": b"one", "b.txt": b"two"}, "first")
        repo.delete_file("a.txt")

        with repo.begin() as tx:
            tx.stage(["a.txt"])
            commit_id = tx.commit("remove")

        assert repo.get_file_at_commit("a.txt", commit_id) is None

    def test_glob_patterns(self) -> None:
        repo = FakeRepository()
        repo.write_file("tasks/a.json", b"{}")
        repo.write_file("tasks/b.json", b"{}")
        repo.write_file("themes.json", b"{}")

        with repo.begin() as tx:
            assert tx.stage("tasks/*.json") == {"tasks/a.json", "tasks/b.json"}

    def test_unmatched_pattern_raises(self) -> None:
        repo = FakeRepository()

        with repo.begin() as tx, pytest.raises(StagingError):
            _ = tx.stage(["nothing.txt"])

    def test_finalized_operations_raise(self) -> None:
        repo = FakeRepository()
        tx = repo.begin()
        tx.cancel()

        with pytest.raises(TransactionFinalizedError):
            _ = tx.stage(["."])


# =============================================================================
# History Query Tests
# =============================================================================


class TestFakeRepositoryHistory:
    def test_limit(self) -> None:
        repo = FakeRepository()
        for i in range(3):
            _ = _commit(repo, {"a.txt": str(i).encode()}, f"c{i}")

        assert [c.message for c in repo.get_history(2)] == ["c2", "c1"]
        assert [c.message for c in repo.get_history_stream()] == ["c2", "c1", "c0"]

    def test_file_history(self) -> None:
        repo = FakeRepository()
        _ = _commit(repo, {"a.txt": b"1"}, "a1")
        _ = _commit(repo, {"b.txt": b"1"}, "b1")
        _ = _commit(repo, {"a.txt": b"2"}, "a2")

        assert [c.message for c in repo.get_file_history("a.txt")] == ["a2", "a1"]
        assert [c.message for c in repo.get_file_history("./a.txt", 1)] == ["a2"]

    def test_file_at_commit_with_abbreviation(self) -> None:
        repo = FakeRepository()
        commit_id = _commit(repo, {"a.txt": b"one"}, "first")

        assert repo.get_file_at_commit("a.txt", commit_id[:6]) == b"one"

    def test_unknown_reference_raises(self) -> None:
        repo = FakeRepository()
        _ = _commit(repo, {"a.txt": b"one"}, "first")

        with pytest.raises(HistoryQueryError):
            _ = repo.get_file_at_commit("a.txt", "0000000")

    def test_differences(self) -> None:
        repo = FakeRepository()
        first = _commit(repo, {"a.txt": b"one\n"}, "first")
        second = _commit(repo, {"a.txt": b"two\n", "b.txt": b"new\n"}, "second")

        diff = repo.get_file_differences(first, second)

        assert b"diff --git a/a.txt b/a.txt" in diff
        assert b"-one\n" in diff
        assert b"+two\n" in diff
        assert b"--- /dev/null" in diff
        assert b"+++ b/b.txt" in diff
