"""Base classes, dataclasses, and types for git integration."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


class GitReaderError(Exception):
    """Base exception for GitReader errors."""

    pass


class RepositoryNotFoundError(GitReaderError):
    """Repository path is not a valid git repository."""

    pass


@dataclass
class Commit:
    """A non-merge commit and the files it touched."""

    sha: str
    author: str
    author_email: str
    timestamp: datetime  # Always UTC, timezone-aware
    message: str = ""
    files_changed: list[str] = field(default_factory=list)  # Relative to repo root


class GitReader(ABC):
    """Abstract base class for git repository readers."""

    @abstractmethod
    async def get_commits(self, limit: int | None = None) -> list[Commit]:
        """Return non-merge commits, newest first, with changed-file lists.

        An empty repository yields an empty list.

        Raises:
            GitReaderError: If the git log cannot be read
        """
        ...

    @abstractmethod
    def get_repo_root(self) -> str:
        pass
