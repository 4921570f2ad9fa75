"""Key-value settings stores for runtime-tunable values."""

import os
import tempfile
from abc import ABC, abstractmethod
from enum import StrEnum
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)


class SettingKey(StrEnum):
    """Documented settings keys read by the context pipeline."""

    MAX_CHAT_HISTORY_TOKENS = "maxChatHistoryTokens"
    MAX_TASK_CONTEXT_FILES_TOKENS = "maxTaskContextFilesTokens"
    MAX_FILES_TO_EMBED = "maxFilesToEmbed"


class SettingsStoreError(Exception):
    """Raised when the settings backend cannot be read or written."""

    pass


class SettingsStore(ABC):
    """Abstract key-value settings store."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for key, or default when unset."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store value under key."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key; missing keys are ignored."""
        ...

    def get_int(self, key: str, default: int) -> int:
        """Return key as an int.

        Settings only tune budgets, so an unreadable backend or a value that
        is not an int is logged and the default is used instead.

        Args:
            key: Settings key, usually a ``SettingKey``
            default: Value used when the key is unset or unusable

        Returns:
            The stored int, or default
        """
        try:
            value = self.get(key, default)
        except SettingsStoreError as e:
            logger.warning(
                "setting_read_failed", key=str(key), error=str(e), default=default
            )
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning("setting_not_an_int", key=key, value=value, default=default)
            return default


class MemorySettingsStore(SettingsStore):
    """Dict-backed settings store."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class YamlSettingsStore(SettingsStore):
    """Settings persisted as a flat YAML mapping.

    The file is re-read on every access so that edits made by other processes
    are picked up; writes replace the whole file.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise SettingsStoreError(f"Cannot read settings {self.path}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise SettingsStoreError(
                f"Settings file {self.path} must contain a mapping, "
                f"got {type(data).__name__}"
            )
        return data

    def _dump(self, data: dict[str, Any]) -> None:
        """Write the mapping through a temp file in the same directory."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise SettingsStoreError(f"Cannot write settings {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=True)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise SettingsStoreError(f"Cannot write settings {self.path}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[str(key)] = value
        self._dump(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)
