"""Integration tests for the repository commands."""

import re
from collections.abc import Callable
from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

RunFunc = Callable[..., int]


@pytest.fixture
def planner(tmp_path: Path, planvault_cli: RunFunc) -> Path:
    root = tmp_path / "planner"
    assert planvault_cli("init", "--repo", str(root)) == 0
    return root


def _output(console: Console) -> str:
    return console.file.getvalue()  # pyright: ignore[reportAttributeAccessIssue,reportUnknownMemberType,reportUnknownVariableType]


@pytest.fixture
def console() -> Console:
    return Console(
        file=StringIO(),
        width=200,
        force_terminal=False,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


def _commit_ids(text: str) -> list[str]:
    return re.findall(r"SHA: ([0-9a-f]{40})", text)


class TestInit:
    def test_creates_repository(self, planner: Path, console: Console) -> None:
        assert (planner / ".git").is_dir()
        assert "Repository ready" in _output(console)

    def test_is_idempotent(self, planner: Path, planvault_cli: RunFunc) -> None:
        assert planvault_cli("init", "--repo", str(planner)) == 0


class TestStatus:
    def test_clean(self, planner: Path, planvault_cli: RunFunc, console: Console) -> None:
        assert planvault_cli("status", "--repo", str(planner)) == 0
        assert "No uncommitted changes" in _output(console)

    def test_lists_untracked(
        self, planner: Path, planvault_cli: RunFunc, console: Console
    ) -> None:
        (planner / "themes.json").write_text("{}")

        assert planvault_cli("status", "--repo", str(planner)) == 0

        out = _output(console)
        assert "Untracked files:" in out
        assert "? themes.json" in out

    def test_not_a_repository(
        self, tmp_path: Path, planvault_cli: RunFunc, console: Console
    ) -> None:
        assert planvault_cli("status", "--repo", str(tmp_path / "nowhere")) == 1
        assert "Not a planvault repository" in _output(console)


class TestCommit:
    def test_commits_everything_by_default(
        self, planner: Path, planvault_cli: RunFunc, console: Console
    ) -> None:
        (planner / "a.txt").write_text("a\n")
        (planner / "b.txt").write_text("b\n")

        assert planvault_cli("commit", "-m", "Add files", "--repo", str(planner)) == 0

        out = _output(console)
        assert "Committed 2 file(s)" in out
        assert len(_commit_ids(out)) == 1

    def test_commits_selected_patterns(
        self, planner: Path, planvault_cli: RunFunc, console: Console
    ) -> None:
        (planner / "a.txt").write_text("a\n")
        (planner / "b.md").write_text("b\n")

        assert planvault_cli("commit", "*.txt", "-m", "Only text", "--repo", str(planner)) == 0
        assert planvault_cli("status", "--repo", str(planner)) == 0

        out = _output(console)
        assert "Committed 1 file(s)" in out
        assert "? b.md" in out

    def test_nothing_to_commit_fails(
        self, planner: Path, planvault_cli: RunFunc, console: Console
    ) -> None:
        assert planvault_cli("commit", "-m", "Empty", "--repo", str(planner)) == 1
        assert "Error:" in _output(console)

    def test_unmatched_pattern_fails(
        self, planner: Path, planvault_cli: RunFunc, console: Console
    ) -> None:
        assert planvault_cli("commit", "nope.txt", "-m", "x", "--repo", str(planner)) == 1
        assert "matched no files" in _output(console)


class TestHistoryCommands:
    @pytest.fixture
    def two_commits(
        self, planner: Path, planvault_cli: RunFunc, console: Console
    ) -> tuple[str, str]:
        (planner / "a.txt").write_text("one\n")
        assert planvault_cli("commit", "-m", "First", "--repo", str(planner)) == 0
        (planner / "a.txt").write_text("two\n")
        assert planvault_cli("commit", "-m", "Second", "--repo", str(planner)) == 0
        first, second = _commit_ids(_output(console))
        console.file.truncate(0)  # pyright: ignore[reportAttributeAccessIssue,reportUnknownMemberType]
        console.file.seek(0)  # pyright: ignore[reportAttributeAccessIssue,reportUnknownMemberType]
        return first, second

    def test_log(
        self,
        planner: Path,
        planvault_cli: RunFunc,
        console: Console,
        two_commits: tuple[str, str],
    ) -> None:
        first, second = two_commits

        assert planvault_cli("log", "--repo", str(planner)) == 0

        out = _output(console)
        assert out.index(second[:8]) < out.index(first[:8])
        assert "CLI User <cli@example.com>" in out

    def test_log_limit_and_file(
        self,
        planner: Path,
        planvault_cli: RunFunc,
        console: Console,
        two_commits: tuple[str, str],
    ) -> None:
        first, second = two_commits

        assert planvault_cli("log", "-n", "1", "--file", "a.txt", "--repo", str(planner)) == 0

        out = _output(console)
        assert second[:8] in out
        assert first[:8] not in out

    def test_diff(
        self,
        planner: Path,
        planvault_cli: RunFunc,
        console: Console,
        two_commits: tuple[str, str],
    ) -> None:
        first, second = two_commits

        assert planvault_cli("diff", first[:7], second, "--repo", str(planner)) == 0

        out = _output(console)
        assert "-one" in out
        assert "+two" in out

    def test_show(
        self,
        planner: Path,
        planvault_cli: RunFunc,
        console: Console,
        two_commits: tuple[str, str],
    ) -> None:
        first, _ = two_commits

        assert planvault_cli("show", first, "a.txt", "--repo", str(planner)) == 0
        assert _output(console) == "one\n"

    def test_show_missing_file(
        self,
        planner: Path,
        planvault_cli: RunFunc,
        console: Console,
        two_commits: tuple[str, str],
    ) -> None:
        first, _ = two_commits

        assert planvault_cli("show", first, "nope.txt", "--repo", str(planner)) == 1
        assert "does not exist" in _output(console)

    def test_unknown_commit(
        self,
        planner: Path,
        planvault_cli: RunFunc,
        console: Console,
        two_commits: tuple[str, str],
    ) -> None:
        _, second = two_commits

        assert planvault_cli("diff", "deadbeef", second, "--repo", str(planner)) == 1
        assert "Commit not found" in _output(console)
