"""Settings storage backends."""

from .settings import (
    MemorySettingsStore,
    SettingKey,
    SettingsStore,
    SettingsStoreError,
    YamlSettingsStore,
)

__all__ = [
    "SettingKey",
    "SettingsStore",
    "SettingsStoreError",
    "MemorySettingsStore",
    "YamlSettingsStore",
]
