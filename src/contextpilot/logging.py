"""structlog setup for contextpilot.

Library code only calls ``structlog.get_logger(__name__)``; the CLI calls
``configure_logging`` once per invocation. Log lines go to stderr because
stdout carries command output.
"""

import logging
import sys
from typing import Any

import structlog

from contextpilot.config import ContextPilotSettings

# Loggers of the embedding, HTTP and git stacks that are chatty at INFO.
NOISY_LOGGERS = ("sentence_transformers", "httpx", "httpcore", "git", "urllib3")

LOG_FORMATS = ("json", "console")


def build_processors(log_format: str) -> list[Any]:
    """Processor chain ending in the renderer for log_format.

    Raises:
        ValueError: If log_format is not one of LOG_FORMATS
    """
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format {log_format!r}, expected {LOG_FORMATS}")

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return processors


def configure_logging(
    log_level: str | None = None,
    log_format: str | None = None,
    settings: ContextPilotSettings | None = None,
    **context: Any,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Level name; defaults to ``settings.log_level``
        log_format: "json" or "console"; defaults to ``settings.log_format``
        settings: Source of the defaults; a fresh ``ContextPilotSettings``
            (environment included) when omitted
        **context: Key-value pairs bound to every log line of this run,
            e.g. ``command="index"``
    """
    settings = settings or ContextPilotSettings()
    level_name = (log_level or settings.log_level).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)
    # Third-party INFO chatter only shows when debugging.
    quiet_level = numeric_level if numeric_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(quiet_level, numeric_level))

    structlog.configure(
        processors=build_processors(log_format or settings.log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    if context:
        structlog.contextvars.bind_contextvars(**context)
