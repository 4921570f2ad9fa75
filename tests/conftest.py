"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import git
import pytest

from contextpilot.chat.messages import ToolCall
from contextpilot.config import ContextSettings
from contextpilot.models.base import (
    AbortSignal,
    ModelCallAborted,
    ModelClient,
    ModelResponse,
)

# Suppress HuggingFace tokenizers parallelism warnings in forked processes
os.environ["TOKENIZERS_PARALLELISM"] = "false"

pytest_plugins = ("pytest_asyncio",)


class ScriptedModelClient(ModelClient):
    """Model client returning canned ``respond`` results in order.

    Each script entry is either the value placed in ``result``, or an
    exception instance that is raised instead.
    """

    def __init__(self, *results: Any) -> None:
        self.results = list(results)
        self.calls: list[dict[str, Any]] = []

    async def call(
        self,
        messages: list[dict[str, Any]],
        *,
        tool: dict[str, Any] | None = None,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | dict[str, Any] | None = None,
        abort: AbortSignal | None = None,
    ) -> ModelResponse:
        self.calls.append({"messages": messages, "tool": tool})
        if abort is not None and abort.is_set():
            raise ModelCallAborted("aborted")
        if not self.results:
            return ModelResponse(content="no tool call")
        result = self.results.pop(0)
        if isinstance(result, BaseException):
            raise result
        call = ToolCall(id="call_1", name="respond", arguments={"result": result})
        return ModelResponse(tool_calls=[call])


@pytest.fixture
def scripted_client() -> Callable[..., ScriptedModelClient]:
    """Factory for scripted model clients."""
    return ScriptedModelClient


@pytest.fixture
def context_settings() -> ContextSettings:
    """Context settings with the production defaults."""
    return ContextSettings()


@pytest.fixture
def temp_repo(tmp_path: Path) -> tuple[Path, git.Repo]:
    """Create a temporary git repository for testing."""
    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    repo = git.Repo.init(repo_path)

    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")

    return repo_path, repo


def _commit_files(
    repo_path: Path, repo: git.Repo, files: list[str], message: str
) -> None:
    for rel in files:
        path = repo_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        previous = path.read_text() if path.exists() else ""
        path.write_text(previous + f"{message}\n")
    repo.index.add(files)
    repo.index.commit(message)


@pytest.fixture
def commit_files() -> Callable[[Path, git.Repo, list[str], str], None]:
    """Touch each file with new content and commit them together."""
    return _commit_files

