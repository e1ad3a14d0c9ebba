"""
comapeocat — unit tests for observability logging

File: tests/unit/observability/test_logging.py

Purpose
- Validate structlog routing to a stream in JSON and console formats.

What this test file should cover
- JSON line validity and sorted keys.
- Level filtering and level name normalization.
- Rejection of unknown levels and formats.
"""

from __future__ import annotations

import io
import json
from typing import TYPE_CHECKING

import pytest
import structlog

from comapeocat.observability import configure_logging, reset_logging

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    reset_logging()


def test_json_format_emits_one_object_per_line() -> None:
    stream = io.StringIO()
    configure_logging("INFO", "json", stream=stream)
    logger = structlog.get_logger("comapeocat.tests")

    logger.info("archive_written", entries=7)
    logger.warning("selection_generated", document_type="track")

    records = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert [record["event"] for record in records] == ["archive_written", "selection_generated"]
    assert records[0]["entries"] == 7
    assert records[0]["level"] == "info"
    assert records[1]["level"] == "warning"
    assert "timestamp" in records[0]


def test_events_below_threshold_are_dropped() -> None:
    stream = io.StringIO()
    configure_logging("WARNING", "json", stream=stream)
    logger = structlog.get_logger("comapeocat.tests")

    logger.debug("hidden")
    logger.info("hidden_too")
    logger.error("shown")

    assert [json.loads(line)["event"] for line in stream.getvalue().splitlines()] == ["shown"]


def test_text_format_is_plain_console_output() -> None:
    stream = io.StringIO()
    configure_logging("debug", "text", stream=stream)

    structlog.get_logger("comapeocat.tests").debug("icon_added", icon_id="tree")

    output = stream.getvalue()
    assert "icon_added" in output
    assert "icon_id=tree" in output
    assert "\x1b[" not in output


def test_warn_alias_is_accepted() -> None:
    stream = io.StringIO()
    configure_logging("warn", "json", stream=stream)

    structlog.get_logger("comapeocat.tests").info("hidden")

    assert stream.getvalue() == ""


@pytest.mark.parametrize(("level", "log_format"), [("LOUD", "json"), ("INFO", "xml")])
def test_unknown_settings_are_rejected(level: str, log_format: str) -> None:
    with pytest.raises(ValueError, match="unsupported"):
        configure_logging(level, log_format, stream=io.StringIO())
