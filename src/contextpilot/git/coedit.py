"""Co-edit analysis: files historically committed together with a target."""

import asyncio
import math
import os
from collections import Counter, defaultdict
from collections.abc import Callable, Iterable, Sequence
from functools import partial
from pathlib import Path

import structlog

from contextpilot.config import settings
from contextpilot.project.files import relative_path
from contextpilot.project.ignore import IgnoreRules

from .base import GitReader, GitReaderError
from .reader import GitPythonReader

logger = structlog.get_logger(__name__)


def compute_co_edit_weights(
    commits: Sequence[Sequence[str]], target_files: Iterable[str]
) -> dict[str, float]:
    """Accumulate inverse-frequency weights of files co-committed with targets.

    For each commit touching a target, every other file f in it gains
    ``ln(total_commits / commits_touching(f))``, so files that change in
    nearly every commit contribute almost nothing.
    """
    total_commits = len(commits)
    if total_commits == 0:
        return {}

    targets = set(target_files)
    touching = Counter(f for files in commits for f in set(files))
    weights: dict[str, float] = defaultdict(float)

    for files in commits:
        unique = dict.fromkeys(files)
        if targets.isdisjoint(unique):
            continue
        for co_edited in unique:
            if co_edited in targets:
                continue
            weights[co_edited] += math.log(total_commits / touching[co_edited])

    return dict(weights)


def rank_co_edited(weights: dict[str, float], threshold: float) -> list[str]:
    """Files with weight >= threshold, heaviest first."""
    ranked = [
        (path, weight)
        for path, weight in weights.items()
        if path and weight >= threshold
    ]
    ranked.sort(key=lambda item: item[1], reverse=True)
    return [path for path, _ in ranked]


class CoEditAnalyzer:
    """Finds files that tend to be edited together with given files.

    The git reader and ignore rules are set up lazily on first use; a project
    without a repository is retried on the next call. Every failure yields an
    empty result.
    """

    def __init__(
        self,
        project_root: str | Path,
        min_co_edit_threshold: float | None = None,
        reader_factory: Callable[[str], GitReader] = GitPythonReader,
    ) -> None:
        self.project_root = os.path.abspath(str(project_root))
        self.min_co_edit_threshold = (
            min_co_edit_threshold
            if min_co_edit_threshold is not None
            else settings.context.min_co_edit_threshold
        )
        self._reader_factory = reader_factory
        self._reader: GitReader | None = None
        self._ignore: IgnoreRules | None = None

    def _get_reader(self) -> GitReader | None:
        """The cached reader, created on first use; None while there is no repo."""
        if self._reader is not None:
            return self._reader
        if not os.path.exists(os.path.join(self.project_root, ".git")):
            return None
        try:
            self._reader = self._reader_factory(self.project_root)
        except GitReaderError as e:
            logger.warning(
                "co_edit_init_failed", project_root=self.project_root, error=str(e)
            )
            return None
        self._ignore = IgnoreRules.from_directory(self.project_root)
        return self._reader

    async def find_co_edited_files(self, target_files: Iterable[str]) -> list[str]:
        """Absolute paths of files co-edited with target_files, strongest first."""
        targets = [relative_path(f, self.project_root) for f in target_files]
        if not targets:
            return []
        reader = self._get_reader()
        if reader is None:
            return []

        try:
            commits = await reader.get_commits()
        except Exception as e:
            logger.warning(
                "co_edit_history_failed", project_root=self.project_root, error=str(e)
            )
            return []
        if not commits:
            return []

        ignore = self._ignore or IgnoreRules()
        file_lists = [ignore.filter(commit.files_changed) for commit in commits]

        loop = asyncio.get_event_loop()
        weights = await loop.run_in_executor(
            None, partial(compute_co_edit_weights, file_lists, targets)
        )
        ranked = rank_co_edited(weights, self.min_co_edit_threshold)
        logger.debug(
            "co_edited_files_found",
            targets=targets,
            commits=len(commits),
            found=len(ranked),
        )
        return [os.path.normpath(os.path.join(self.project_root, p)) for p in ranked]
