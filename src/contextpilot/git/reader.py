"""GitPython-based implementation of GitReader."""

import asyncio
from datetime import UTC, datetime
from pathlib import Path

import git
import structlog

from .base import Commit, GitReader, GitReaderError, RepositoryNotFoundError

logger = structlog.get_logger(__name__)

RECORD_SEPARATOR = "\x1e"
FIELD_SEPARATOR = "\x1f"
LOG_FORMAT = "%x1e%H%x1f%an%x1f%ae%x1f%ct%x1f%s"


def parse_log(output: str) -> list[Commit]:
    """Parse ``git log --name-only`` output produced with LOG_FORMAT."""
    commits: list[Commit] = []
    for record in output.split(RECORD_SEPARATOR):
        if not record.strip():
            continue
        header, _, body = record.partition("\n")
        fields = header.split(FIELD_SEPARATOR)
        if len(fields) < 5:
            logger.warning("commit_parse_failed", header=header[:80])
            continue
        sha, author, author_email, committed, message = fields[:5]
        try:
            timestamp = datetime.fromtimestamp(int(committed), tz=UTC)
        except ValueError:
            logger.warning("commit_parse_failed", sha=sha, timestamp=committed)
            continue
        files_changed = [line.strip() for line in body.splitlines() if line.strip()]
        commits.append(
            Commit(
                sha=sha,
                author=author or "Unknown",
                author_email=author_email or "unknown@example.com",
                timestamp=timestamp,
                message=message,
                files_changed=files_changed,
            )
        )
    return commits


class GitPythonReader(GitReader):
    """GitPython-based implementation of GitReader."""

    def __init__(self, repo_path: str) -> None:
        try:
            self.repo = git.Repo(repo_path, search_parent_directories=False)
            self.repo_path = Path(repo_path).resolve()
        except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
            raise RepositoryNotFoundError(
                f"Not a valid git repository: {repo_path}"
            ) from e

    def get_repo_root(self) -> str:
        return str(self.repo_path)

    async def get_commits(self, limit: int | None = None) -> list[Commit]:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._get_commits_sync, limit)

    def _has_commits(self) -> bool:
        try:
            return self.repo.head.is_valid()
        except ValueError:
            return False

    def _get_commits_sync(self, limit: int | None) -> list[Commit]:
        if not self._has_commits():
            logger.debug("repository_has_no_commits", repo_path=str(self.repo_path))
            return []

        args = ["--name-only", "--no-merges", f"--pretty=format:{LOG_FORMAT}"]
        if limit:
            args.append(f"--max-count={limit}")

        try:
            output = self.repo.git.log(*args)
        except git.GitCommandError as e:
            if "does not have any commits" in str(e):
                return []
            raise GitReaderError(f"Git command failed: {e}") from e

        return parse_log(output)
