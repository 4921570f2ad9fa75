"""Tests for host system detection."""

import pytest

from contextpilot.utils import platform as host
from contextpilot.utils.platform import (
    SystemInfo,
    _windows_version,
    country_from_locale,
    detect_shell,
)


@pytest.mark.parametrize(
    "locale_name,expected",
    [
        ("en_US.UTF-8", "US"),
        ("de_DE", "DE"),
        ("pt-BR", "BR"),
        ("C", None),
        ("C.UTF-8", None),
        ("", None),
    ],
)
def test_country_from_locale(locale_name: str, expected: str | None) -> None:
    assert country_from_locale(locale_name) == expected


def test_country_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("LC_ALL", "fr_CA.UTF-8")
    assert country_from_locale() == "CA"


@pytest.mark.parametrize(
    "release,version,expected",
    [
        ("10", "10.0.19045", "Windows 10"),
        ("10", "10.0.22631", "Windows 11"),
        ("10", "unknown", "Windows 10"),
        ("8.1", "6.3.9600", "Windows 8.1"),
    ],
)
def test_windows_version(release: str, version: str, expected: str) -> None:
    assert _windows_version(release, version) == expected


def test_detect_shell_uses_basename(monkeypatch) -> None:
    monkeypatch.setenv("SHELL", "/usr/local/bin/fish")
    assert detect_shell() == "fish"


def test_detect_shell_fallback(monkeypatch) -> None:
    monkeypatch.delenv("SHELL", raising=False)
    monkeypatch.setattr(host.platform, "system", lambda: "Linux")
    assert detect_shell() == "sh"


def test_describe() -> None:
    info = SystemInfo("macOS", "23.4.0", "arm64", "zsh", "US")
    assert info.describe() == "macOS (Release: 23.4.0) architecture arm64"


def test_system_info_is_cached() -> None:
    assert host.get_system_info() is host.get_system_info()
