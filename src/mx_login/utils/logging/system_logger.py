"""Operational log for mx-login.

One process-wide logger, `mx-login.system`, receives dict messages such as
{"event": "session_persisted", "message": "...", ...}. It has two outputs:
- stderr: WARNING and up while prompts are on screen, INFO with --verbose
- <data_dir>/logs/system.jsonl: one JSON object per record, INFO or DEBUG

The JSONL output is attached once the data directory is known.
"""

from __future__ import annotations

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "get_system_logger",
    "set_console_level",
]

import logging
import sys
from pathlib import Path

from mx_login.constants import APP_NAME
from mx_login.utils.file_helpers import ensure_secure_directory
from mx_login.utils.logging.iso_formatter import ISO8601Formatter

SYSTEM_LOGGER_NAME = f"{APP_NAME}.system"


class ConsoleFormatter(logging.Formatter):
    """`LEVEL: text` lines, taking text from a dict's message (or event)."""

    def format(self, record: logging.LogRecord) -> str:
        if isinstance(record.msg, dict):
            text = record.msg.get("message") or record.msg.get("event", "")
        else:
            text = record.getMessage()
        return f"{record.levelname}: {text}"


_logger: logging.Logger | None = None
_console_handler: logging.Handler | None = None
_jsonl_handler: logging.FileHandler | None = None


def get_system_logger() -> logging.Logger:
    """Return the system logger, creating it with its stderr output on first use.

    Example:
        >>> get_system_logger().info({"event": "homeserver_resolved", "homeserver": "https://..."})
    """
    global _logger, _console_handler

    if _logger is None:
        logger = logging.getLogger(SYSTEM_LOGGER_NAME)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        while logger.handlers:
            logger.removeHandler(logger.handlers[0])

        _console_handler = logging.StreamHandler(sys.stderr)
        _console_handler.setLevel(logging.WARNING)
        _console_handler.setFormatter(ConsoleFormatter())
        logger.addHandler(_console_handler)
        _logger = logger

    return _logger


def set_console_level(level: int) -> None:
    """Change what reaches stderr (e.g. logging.INFO for --verbose)."""
    get_system_logger()
    if _console_handler is not None:
        _console_handler.setLevel(level)


def configure_system_logger_file(log_path: Path, log_level: str = "INFO") -> None:
    """Send records to a JSONL file, replacing any previous one.

    If the log file cannot be opened, logging stays as it was (stderr-only
    on first use).
    """
    global _jsonl_handler

    logger = get_system_logger()
    try:
        ensure_secure_directory(log_path.parent)
        handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    except OSError:
        return

    if _jsonl_handler is not None:
        logger.removeHandler(_jsonl_handler)
        _jsonl_handler.close()

    _jsonl_handler = handler
    _jsonl_handler.setLevel(logging.DEBUG if log_level == "DEBUG" else logging.INFO)
    _jsonl_handler.setFormatter(ISO8601Formatter())
    logger.addHandler(_jsonl_handler)
