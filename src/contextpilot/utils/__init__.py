"""Utility helpers for contextpilot."""

from .platform import SystemInfo, country_from_locale, get_system_info

__all__ = ["SystemInfo", "country_from_locale", "get_system_info"]
