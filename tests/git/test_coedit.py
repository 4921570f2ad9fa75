"""Tests for co-edit analysis."""

import math
from pathlib import Path

import pytest

from contextpilot.git import CoEditAnalyzer, GitReader, GitReaderError
from contextpilot.git.coedit import compute_co_edit_weights, rank_co_edited

# Ten commits; A is the target file.
HISTORY = [
    ["src/a.py", "src/b.py", "src/c.py", "src/e.py"],
    ["src/a.py", "src/b.py", "src/c.py", "src/e.py"],
    ["src/a.py", "src/c.py"],
    ["src/a.py"],
    ["src/b.py"],
    ["src/c.py"],
    ["src/c.py"],
    ["src/d.py"],
    ["src/d.py", "src/e.py"],
    ["src/d.py", "src/e.py"],
]


class TestComputeCoEditWeights:
    """Tests for the pure weighting function."""

    def test_inverse_frequency_weights(self) -> None:
        weights = compute_co_edit_weights(HISTORY, ["src/a.py"])

        assert weights["src/b.py"] == pytest.approx(2 * math.log(10 / 3))
        assert weights["src/c.py"] == pytest.approx(3 * math.log(2))
        assert weights["src/e.py"] == pytest.approx(2 * math.log(10 / 4))
        assert "src/d.py" not in weights
        assert "src/a.py" not in weights

    def test_threshold_and_ordering(self) -> None:
        weights = compute_co_edit_weights(HISTORY, ["src/a.py"])

        # e.py accumulates about 1.83, below the threshold of 2.
        assert rank_co_edited(weights, 2.0) == ["src/b.py", "src/c.py"]

    def test_duplicate_paths_in_commit_count_once(self) -> None:
        commits = [["a", "b", "b"], ["c"], ["d"]]

        weights = compute_co_edit_weights(commits, ["a"])

        assert weights == {"b": pytest.approx(math.log(3))}

    def test_no_commits(self) -> None:
        assert compute_co_edit_weights([], ["a"]) == {}

    def test_file_in_every_commit_weighs_nothing(self) -> None:
        commits = [["a", "lock"], ["lock"], ["lock", "x"]]

        weights = compute_co_edit_weights(commits, ["a"])

        assert weights == {"lock": 0.0}
        assert rank_co_edited(weights, 2.0) == []


class TestCoEditAnalyzer:
    """Tests for CoEditAnalyzer against real repositories."""

    async def test_finds_co_edited_files(self, temp_repo, commit_files) -> None:
        repo_path, repo = temp_repo
        for i, files in enumerate(HISTORY, start=1):
            commit_files(repo_path, repo, files, f"commit {i}")

        analyzer = CoEditAnalyzer(repo_path, min_co_edit_threshold=2.0)
        result = await analyzer.find_co_edited_files([str(repo_path / "src/a.py")])

        assert result == [str(repo_path / "src/b.py"), str(repo_path / "src/c.py")]

    async def test_ignored_files_are_excluded(self, temp_repo, commit_files) -> None:
        repo_path, repo = temp_repo
        for i in range(4):
            commit_files(
                repo_path, repo, ["src/a.py", "docs/guide.md"], f"commit {i}"
            )
        for i in range(6):
            commit_files(repo_path, repo, [f"src/other{i}.py"], f"other {i}")

        analyzer = CoEditAnalyzer(repo_path, min_co_edit_threshold=0.1)
        result = await analyzer.find_co_edited_files([str(repo_path / "src/a.py")])

        assert result == []

    async def test_not_a_repository(self, tmp_path: Path) -> None:
        analyzer = CoEditAnalyzer(tmp_path)

        assert await analyzer.find_co_edited_files([str(tmp_path / "a.py")]) == []

    async def test_repository_without_commits(self, temp_repo) -> None:
        repo_path, _ = temp_repo
        analyzer = CoEditAnalyzer(repo_path)

        assert await analyzer.find_co_edited_files([str(repo_path / "a.py")]) == []

    async def test_no_targets(self, temp_repo) -> None:
        repo_path, _ = temp_repo
        assert await CoEditAnalyzer(repo_path).find_co_edited_files([]) == []

    async def test_reader_failure_yields_empty(self, temp_repo) -> None:
        repo_path, _ = temp_repo

        class BrokenReader(GitReader):
            def __init__(self, path: str) -> None:
                self.path = path

            async def get_commits(self, limit=None):
                raise GitReaderError("log failed")

            def get_repo_root(self) -> str:
                return self.path

        analyzer = CoEditAnalyzer(repo_path, reader_factory=BrokenReader)

        assert await analyzer.find_co_edited_files([str(repo_path / "a.py")]) == []

    async def test_reader_setup_failure_is_retried(self, temp_repo) -> None:
        repo_path, _ = temp_repo
        attempts: list[str] = []

        def failing_factory(path: str) -> GitReader:
            attempts.append(path)
            raise GitReaderError("repository is locked")

        analyzer = CoEditAnalyzer(repo_path, reader_factory=failing_factory)
        target = [str(repo_path / "a.py")]

        assert await analyzer.find_co_edited_files(target) == []
        assert await analyzer.find_co_edited_files(target) == []
        assert attempts == [str(repo_path), str(repo_path)]
