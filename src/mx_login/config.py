"""Application configuration for mx-login.

Defines the configuration model for the login client. Config is optional:
every field has a default and CLI options override stored values. It is
stored at the OS-appropriate location (via click.get_app_dir).

Example usage:
    # Load from config file (defaults if missing)
    config = LoginConfig.load_or_default(get_config_path())

    # Save configuration
    config.save_to_file(get_config_path())
"""

from __future__ import annotations

__all__ = [
    "CONFIG_FILENAME",
    "LoginConfig",
    "get_config_path",
]

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from mx_login.constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    INITIAL_DEVICE_DISPLAY_NAME,
    MAX_HTTP_TIMEOUT_SECONDS,
    MIN_HTTP_TIMEOUT_SECONDS,
    SESSION_FILENAME,
    SYSTEM_LOG_FILENAME,
)
from mx_login.exceptions import ConfigurationError
from mx_login.utils.file_helpers import (
    ensure_secure_directory,
    get_app_dir,
    load_validated_json,
    write_text_atomic,
)

CONFIG_FILENAME = "config.json"


def get_config_path() -> Path:
    """Default config file location (<app dir>/config.json)."""
    return get_app_dir() / CONFIG_FILENAME


class LoginConfig(BaseModel):
    """Login client configuration.

    Attributes:
        homeserver: Server name ("example.org") or homeserver URL. Prompted
            for when not set.
        data_dir: Directory holding local stores, logs and the default
            session file.
        session_file: Where the session is persisted. Defaults to
            <data_dir>/session.json.
        device_display_name: Display name for the newly created device.
        http_timeout: Transport timeout in seconds for homeserver requests.
        open_browser: Whether the SSO login also opens the URL in a browser.
        log_level: Logging level for the JSONL system log.
    """

    homeserver: str | None = None
    data_dir: str = Field(default=DEFAULT_DATA_DIR, min_length=1)
    session_file: str | None = None
    device_display_name: str = Field(default=INITIAL_DEVICE_DISPLAY_NAME, min_length=1)
    http_timeout: int = Field(
        default=DEFAULT_HTTP_TIMEOUT_SECONDS,
        ge=MIN_HTTP_TIMEOUT_SECONDS,
        le=MAX_HTTP_TIMEOUT_SECONDS,
    )
    open_browser: bool = True
    log_level: Literal["DEBUG", "INFO"] = "INFO"

    model_config = {"extra": "ignore"}  # Ignore unknown fields for forward compat

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()

    @property
    def session_path(self) -> Path:
        """Resolved session file path."""
        if self.session_file:
            return Path(self.session_file).expanduser()
        return self.data_path / SESSION_FILENAME

    @property
    def system_log_path(self) -> Path:
        return self.data_path / "logs" / SYSTEM_LOG_FILENAME

    def save_to_file(self, config_path: Path) -> None:
        """Write the config as indented JSON (directory 0700, file 0600)."""
        ensure_secure_directory(config_path.parent)
        write_text_atomic(config_path, json.dumps(self.model_dump(), indent=2) + "\n")

    @classmethod
    def load_from_file(cls, config_path: Path) -> "LoginConfig":
        """Read and validate a config file.

        Raises:
            FileNotFoundError: No file at config_path.
            ConfigurationError: The file is not valid JSON or fails validation.
        """
        try:
            return load_validated_json(
                config_path,
                cls,
                file_type="config",
                recovery_hint=f"Fix or delete {config_path} to use defaults.",
            )
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    @classmethod
    def load_or_default(cls, config_path: Path) -> "LoginConfig":
        """Load configuration, falling back to defaults when no file exists.

        Raises:
            ConfigurationError: If the file exists but is invalid.
        """
        if not config_path.exists():
            return cls()
        return cls.load_from_file(config_path)
