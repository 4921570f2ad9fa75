"""Host system detection for prompt templating.

Usage:
    from contextpilot.utils.platform import get_system_info

    info = get_system_info()
    info.os_name, info.shell_type, info.country
"""

from __future__ import annotations

import functools
import locale
import os
import platform
from dataclasses import dataclass


@dataclass(frozen=True)
class SystemInfo:
    """Immutable host snapshot.

    Attributes:
        os_name: Friendly OS name ("macOS", "Linux", "Windows 11")
        os_release: Kernel or OS release string
        machine: CPU architecture ("arm64", "x86_64")
        shell_type: Basename of the user's shell ("zsh", "bash", "powershell")
        country: Country code from the locale ("US"), or None
    """

    os_name: str
    os_release: str
    machine: str
    shell_type: str
    country: str | None

    def describe(self) -> str:
        return (
            f"{self.os_name} (Release: {self.os_release}) "
            f"architecture {self.machine}"
        )


def _windows_version(release: str, version: str) -> str:
    major = release.split(".")[0]
    if major in ("10", "11"):
        try:
            build = int(version.split(".")[2])
        except (IndexError, ValueError):
            build = 0
        return "Windows 11" if build >= 22000 else "Windows 10"
    return f"Windows {release}".strip()


def friendly_os_name() -> str:
    system = platform.system()
    if system == "Darwin":
        return "macOS"
    if system == "Windows":
        return _windows_version(platform.release(), platform.version())
    return system or "Unknown"


def detect_shell() -> str:
    shell = os.environ.get("SHELL")
    if shell:
        return os.path.basename(shell)
    if platform.system() == "Windows":
        return "powershell"
    return "sh"


def country_from_locale(locale_name: str | None = None) -> str | None:
    """Return the territory part of a locale name ("en_US.UTF-8" -> "US")."""
    if locale_name is None:
        locale_name = (
            os.environ.get("LC_ALL")
            or os.environ.get("LANG")
            or locale.getlocale()[0]
        )
    if not locale_name:
        return None
    language = locale_name.split(".")[0]
    for separator in ("_", "-"):
        if separator in language:
            return language.split(separator, 1)[1] or None
    return None


@functools.lru_cache(maxsize=1)
def get_system_info() -> SystemInfo:
    """Get cached host info. Detection runs once per process."""
    return SystemInfo(
        os_name=friendly_os_name(),
        os_release=platform.release(),
        machine=platform.machine(),
        shell_type=detect_shell(),
        country=country_from_locale(),
    )
