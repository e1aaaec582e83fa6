"""Logging utilities.

This package provides logging infrastructure for mx-login:
- iso_formatter: ISO 8601 timestamp formatting for JSONL logs
- system_logger: Singleton operational logger (stderr + JSONL file)

Import directly from submodules:
    from mx_login.utils.logging.system_logger import get_system_logger
"""

__all__: list[str] = []  # Direct submodule imports required (see docstring)
