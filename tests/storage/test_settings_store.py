"""Tests for settings stores."""

from pathlib import Path

import pytest

from contextpilot.storage import (
    MemorySettingsStore,
    SettingKey,
    SettingsStoreError,
    YamlSettingsStore,
)


class TestMemorySettingsStore:
    """Tests for the in-memory store."""

    def test_get_set_delete(self) -> None:
        store = MemorySettingsStore()

        store.set(SettingKey.MAX_CHAT_HISTORY_TOKENS, 8000)
        assert store.get("maxChatHistoryTokens") == 8000

        store.delete(SettingKey.MAX_CHAT_HISTORY_TOKENS)
        store.delete("never-set")
        assert store.get(SettingKey.MAX_CHAT_HISTORY_TOKENS, 5) == 5

    @pytest.mark.parametrize(
        ("stored", "expected"), [("12000", 12000), ("lots", 10), (None, 10)]
    )
    def test_get_int(self, stored: object, expected: int) -> None:
        store = MemorySettingsStore({SettingKey.MAX_FILES_TO_EMBED: stored})
        assert store.get_int(SettingKey.MAX_FILES_TO_EMBED, 10) == expected


class TestYamlSettingsStore:
    """Tests for the YAML-backed store."""

    def test_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "config" / "settings.yaml"
        store = YamlSettingsStore(path)

        store.set(SettingKey.MAX_TASK_CONTEXT_FILES_TOKENS, 20000)
        store.set("project.demo.instructions", "Use tabs.")

        reopened = YamlSettingsStore(path)
        assert reopened.get_int(SettingKey.MAX_TASK_CONTEXT_FILES_TOKENS, 0) == 20000
        assert reopened.get("project.demo.instructions") == "Use tabs."
        assert "maxTaskContextFilesTokens: 20000" in path.read_text()

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        store = YamlSettingsStore(tmp_path / "none.yaml")
        assert store.get("anything", "default") == "default"

    def test_delete(self, tmp_path: Path) -> None:
        store = YamlSettingsStore(tmp_path / "settings.yaml")
        store.set("a", 1)

        store.delete("a")

        assert store.get("a") is None

    def test_non_mapping_file(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(SettingsStoreError):
            YamlSettingsStore(path).get("a")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("key: [unclosed\n")

        with pytest.raises(SettingsStoreError):
            YamlSettingsStore(path).get("key")

    def test_get_int_falls_back_on_unreadable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("[: not yaml\n")
        store = YamlSettingsStore(path)

        assert store.get_int(SettingKey.MAX_CHAT_HISTORY_TOKENS, 5000) == 5000

    def test_write_leaves_no_temp_files(self, tmp_path: Path) -> None:
        store = YamlSettingsStore(tmp_path / "settings.yaml")

        store.set("a", 1)
        store.set("b", 2)

        assert [p.name for p in tmp_path.iterdir()] == ["settings.yaml"]
