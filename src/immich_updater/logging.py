"""Logging configuration for the Immich updater.

structlog is routed through the standard library so that both the
console and the append-only log file receive the same
``YYYY-MM-DD HH:MM:SS - message`` lines. The log file is never rotated.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import structlog

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Keys structlog/stdlib add that are not part of the rendered context.
_META_KEYS = ("level", "logger", "exc_info", "stack_info")


def render_line(_logger: Any, _method: str, event_dict: dict[str, Any]) -> str:
    """Render an event as ``timestamp - event (key=value ...)``."""
    timestamp = event_dict.pop("timestamp", "")
    event = event_dict.pop("event", "")
    exception = event_dict.pop("exception", None)
    for key in _META_KEYS:
        event_dict.pop(key, None)

    line = f"{timestamp} - {event}"
    if event_dict:
        context = " ".join(f"{key}={value}" for key, value in event_dict.items())
        line = f"{line} ({context})"
    if exception:
        line = f"{line}\n{exception}"
    return line


def _build_formatter() -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.stdlib.add_log_level],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.TimeStamper(fmt=TIMESTAMP_FORMAT, utc=False),
            structlog.processors.format_exc_info,
            render_line,
        ],
    )


def setup_logging(log_file: Path | None = None, log_level: str = "INFO") -> None:
    """Configure console logging and, when given, the append-only log file."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    # Repeat calls replace handlers rather than stacking them
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    logging.basicConfig(format="%(message)s", level=level, handlers=[])
    root.setLevel(level)
    formatter = _build_formatter()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Reduce noise from the HTTP stack
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)
