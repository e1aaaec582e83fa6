"""Shared CLI utility functions.

Provides common helpers for CLI commands to avoid duplication.
"""

from __future__ import annotations

__all__ = [
    "exit_with_failure",
    "load_config_or_exit",
    "resolve_session_path",
    "setup_logging",
]

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from mx_login.config import LoginConfig, get_config_path
from mx_login.exceptions import ConfigurationError, LoginFailure
from mx_login.utils.logging.system_logger import (
    configure_system_logger_file,
    get_system_logger,
    set_console_level,
)

from .styling import style_error


def exit_with_failure(
    error: LoginFailure,
    *,
    event: str,
    terminal_message: str,
    extra_terminal_lines: list[str] | None = None,
) -> NoReturn:
    """Log a fatal login failure, print it and exit with its exit code.

    Args:
        error: The failure being handled.
        event: Event name for the log entry.
        terminal_message: Error message for terminal output.
        extra_terminal_lines: Additional lines to print after the error.

    Raises:
        SystemExit: Always, with error.exit_code.
    """
    get_system_logger().debug(
        {
            "event": event,
            "message": str(error),
            "failure_type": error.failure_type,
            "error_type": type(error).__name__,
            "exit_code": error.exit_code,
        }
    )

    click.echo(style_error(terminal_message), err=True)
    for line in extra_terminal_lines or []:
        click.echo(line, err=True)
    sys.exit(error.exit_code)


def load_config_or_exit(config_path: Path | None) -> LoginConfig:
    """Load the config file (defaults if absent), exiting on invalid config."""
    path = config_path or get_config_path()
    try:
        return LoginConfig.load_or_default(path)
    except ConfigurationError as e:
        exit_with_failure(e, event="config_invalid", terminal_message=f"Error: {e}")


def setup_logging(config: LoginConfig, *, verbose: bool = False) -> None:
    """Attach the JSONL log file and pick the console level."""
    configure_system_logger_file(config.system_log_path, config.log_level)
    set_console_level(logging.INFO if verbose else logging.WARNING)


def resolve_session_path(config: LoginConfig, session_file: str | None) -> Path:
    """Session file from the CLI option, falling back to config."""
    if session_file:
        return Path(session_file).expanduser()
    return config.session_path
