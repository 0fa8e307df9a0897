"""Tests for immich_updater.logging: console and append-only file output."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import pytest
import structlog

from immich_updater.logging import get_logger, render_line, setup_logging

LINE_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} - ")


@pytest.fixture(autouse=True)
def _reset_root_logger():
    """Reset root logger state before and after each test."""
    original_handlers = logging.root.handlers[:]
    original_level = logging.root.level
    logging.root.handlers.clear()
    yield
    for handler in logging.root.handlers:
        handler.close()
    logging.root.handlers.clear()
    logging.root.handlers.extend(original_handlers)
    logging.root.setLevel(original_level)
    structlog.reset_defaults()


def _flush() -> None:
    for handler in logging.root.handlers:
        handler.flush()


class TestRenderLine:
    def test_plain_event(self) -> None:
        line = render_line(None, "info", {"event": "hello", "timestamp": "2026-01-02 03:04:05"})
        assert line == "2026-01-02 03:04:05 - hello"

    def test_context_appended(self) -> None:
        line = render_line(
            None,
            "info",
            {"event": "hello", "timestamp": "t", "level": "info", "pid": 42},
        )
        assert line == "t - hello (pid=42)"

    def test_exception_on_next_line(self) -> None:
        line = render_line(None, "error", {"event": "x", "timestamp": "t", "exception": "Trace"})
        assert line == "t - x\nTrace"


class TestSetupLogging:
    def test_writes_timestamped_lines_to_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "update_log.txt"
        setup_logging(log_file)

        get_logger("test.file").info("🔄 Starting Immich update check")
        _flush()

        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        assert LINE_RE.match(lines[0])
        assert lines[0].endswith(" - 🔄 Starting Immich update check")

    def test_appends_across_runs(self, tmp_path: Path) -> None:
        log_file = tmp_path / "update_log.txt"
        log_file.write_text("2020-01-01 00:00:00 - earlier run\n", encoding="utf-8")

        setup_logging(log_file)
        get_logger("test.append").warning("⚠️ second run", attempt="1/3")
        _flush()

        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "2020-01-01 00:00:00 - earlier run"
        assert lines[1].endswith(" - ⚠️ second run (attempt=1/3)")

    def test_stdlib_records_use_same_format(self, tmp_path: Path) -> None:
        log_file = tmp_path / "update_log.txt"
        setup_logging(log_file)

        logging.getLogger("third.party").warning("plain stdlib")
        _flush()

        assert LINE_RE.match(log_file.read_text(encoding="utf-8"))

    def test_repeat_setup_does_not_duplicate_handlers(self, tmp_path: Path) -> None:
        setup_logging()
        setup_logging(tmp_path / "update_log.txt")

        assert len(logging.root.handlers) == 2

    def test_level_filtering(self, tmp_path: Path) -> None:
        log_file = tmp_path / "update_log.txt"
        setup_logging(log_file, log_level="WARNING")

        log = get_logger("test.level")
        log.info("hidden")
        log.warning("shown")
        _flush()

        content = log_file.read_text(encoding="utf-8")
        assert "hidden" not in content
        assert "shown" in content

    def test_invalid_level_defaults_to_info(self) -> None:
        setup_logging(log_level="NONEXISTENT")
        assert logging.root.level == logging.INFO

    def test_reduces_http_noise(self) -> None:
        setup_logging(log_level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING
