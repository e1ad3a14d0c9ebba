"""Structured logging setup for the command line: JSON lines or console text on stderr."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Final, TextIO

import structlog

if TYPE_CHECKING:
    from structlog.typing import Processor

LOG_LEVELS: Final[dict[str, int]] = logging.getLevelNamesMapping()


def configure_logging(
    level: str = "WARNING",
    log_format: str = "text",
    stream: TextIO | None = None,
) -> None:
    """Route every ``structlog`` logger to ``stream`` (stderr by default).

    ``log_format`` is ``"json"`` for one JSON object per line, or ``"text"`` for
    key=value console output without colors.
    """

    numeric_level = _parse_log_level(level)
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    elif log_format == "text":
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        raise ValueError(f"unsupported log format {log_format!r}; expected json or text")

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


def reset_logging() -> None:
    """Restore structlog's built-in defaults."""

    structlog.reset_defaults()


def _parse_log_level(value: str) -> int:
    normalized = value.strip().upper()
    if normalized == "WARN":
        normalized = "WARNING"
    level = LOG_LEVELS.get(normalized)
    if level is None:
        raise ValueError(f"unsupported log level {value!r}")
    return level


__all__ = ["configure_logging", "reset_logging"]
