"""Tests for structlog configuration."""

import logging
from collections.abc import Iterator

import pytest
import structlog

from contextpilot.config import ContextPilotSettings
from contextpilot.logging import NOISY_LOGGERS, build_processors, configure_logging


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    levels = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


class TestBuildProcessors:
    def test_json_renderer_last(self) -> None:
        processors = build_processors("json")
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer_last(self) -> None:
        processors = build_processors("console")
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_unknown_format(self) -> None:
        with pytest.raises(ValueError, match="Unknown log format"):
            build_processors("xml")


class TestConfigureLogging:
    def test_defaults_come_from_settings(self) -> None:
        settings = ContextPilotSettings(log_level="debug", log_format="json")

        configure_logging(settings=settings)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert logging.getLogger("httpx").level == logging.DEBUG

    def test_explicit_arguments_override_settings(self) -> None:
        settings = ContextPilotSettings(log_level="debug", log_format="json")

        configure_logging("error", "console", settings=settings)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert logging.getLogger("httpx").level == logging.ERROR

    def test_third_party_loggers_quieted_at_info(self) -> None:
        configure_logging("info", settings=ContextPilotSettings())

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_context_bound_and_replaced(self) -> None:
        configure_logging(settings=ContextPilotSettings(), command="index")
        assert structlog.contextvars.get_contextvars() == {"command": "index"}

        configure_logging(settings=ContextPilotSettings())
        assert structlog.contextvars.get_contextvars() == {}
