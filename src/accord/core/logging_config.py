"""Centralized logging configuration for Accord.

The full-screen console owns the terminal, so while it runs log records are
written to a file only. Non-interactive entry points may also log to stderr.

Usage:
    from accord.core.logging_config import configure_logging

    # Configure once at application startup
    configure_logging(level="DEBUG", file_path="~/.accord/console.log", console=False)

    # Get loggers in modules
    logger = logging.getLogger(__name__)

Environment Variables:
    ACCORD_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    ACCORD_LOG_FORMAT: Output format ("text" or "json")
    ACCORD_LOG_FILE: Optional log file path
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Literal

TEXT_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes present on every LogRecord; anything else is an "extra" field
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)

_configured = False


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Outputs one object per line:
    {
        "timestamp": "2026-10-18T14:30:00.123000",
        "level": "WARNING",
        "logger": "accord.frontends.tui.console.commands",
        "message": "node replied with error: ...",
        "extra": {...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def configure_logging(
    level: str | None = None,
    format: Literal["text", "json"] | None = None,
    file_path: str | Path | None = None,
    console: bool = True,
    force: bool = False,
) -> None:
    """Configure logging for the application.

    This should be called once at application startup. Subsequent calls
    are ignored unless force=True.

    Args:
        level: Log level. Defaults to ACCORD_LOG_LEVEL or "INFO".
        format: Output format. Defaults to ACCORD_LOG_FORMAT or "text".
        file_path: Optional file path. Defaults to ACCORD_LOG_FILE.
        console: Also log to stderr. Must be False while the full-screen
            console is running.
        force: Force reconfiguration even if already configured.
    """
    global _configured
    if _configured and not force:
        return

    level = level or os.environ.get("ACCORD_LOG_LEVEL", "INFO")
    format = format or os.environ.get("ACCORD_LOG_FORMAT", "text")  # type: ignore
    file_path = file_path or os.environ.get("ACCORD_LOG_FILE")

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    if format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if file_path:
        path = Path(file_path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if not root_logger.handlers:
        root_logger.addHandler(logging.NullHandler())

    _configured = True
