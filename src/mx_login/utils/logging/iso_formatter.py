"""JSONL formatter for the system log.

Each record becomes one JSON object:

    {"time": "2025-12-04T10:48:37.123Z", "level": "INFO", "event": "...", ...}

Dict messages are merged into the entry. Fields that could carry
credentials are masked, whatever the caller put in them.
"""

from __future__ import annotations

__all__ = ["ISO8601Formatter", "REDACTED_FIELDS"]

import json
import logging
from datetime import datetime, timezone

REDACTED_FIELDS: frozenset[str] = frozenset(
    {"password", "access_token", "refresh_token", "login_token", "token", "passphrase"}
)


class ISO8601Formatter(logging.Formatter):
    """Formats records as JSONL with UTC millisecond timestamps."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        moment = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def format(self, record: logging.LogRecord) -> str:
        fields = record.msg if isinstance(record.msg, dict) else {"message": record.getMessage()}
        entry: dict[str, object] = {"time": self.formatTime(record), "level": record.levelname}
        for key, value in fields.items():
            entry[key] = "[redacted]" if key in REDACTED_FIELDS else value
        return json.dumps(entry, default=str)
