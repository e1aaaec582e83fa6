"""File utilities shared by config and session storage.

Everything mx-login writes (config, session, logs, store directories) is
private to the user, so writes go through the helpers here:
- get_app_dir: where the config file lives
- set_secure_permissions / ensure_secure_directory: owner-only modes
- load_validated_json: JSON file -> pydantic model, with readable errors
- write_text_atomic: replace a file without exposing partial content
"""

from __future__ import annotations

__all__ = [
    "ensure_secure_directory",
    "get_app_dir",
    "load_validated_json",
    "set_secure_permissions",
    "write_text_atomic",
]

import json
import os
import sys
import tempfile
from pathlib import Path
from typing import TypeVar

import click
from pydantic import BaseModel, ValidationError

from mx_login.constants import APP_NAME

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_app_dir() -> Path:
    """Per-user config directory for mx-login (click's platform rules)."""
    return Path(click.get_app_dir(APP_NAME))


def set_secure_permissions(path: Path, *, is_directory: bool = False) -> None:
    """Restrict a path to its owner (0700 for directories, 0600 for files).

    No-op on Windows. Filesystems that refuse chmod are tolerated.
    """
    if sys.platform == "win32":
        return
    try:
        os.chmod(path, 0o700 if is_directory else 0o600)
    except OSError:
        pass  # e.g. some network mounts


def ensure_secure_directory(path: Path) -> None:
    """Create a directory (and parents) with owner-only permissions.

    Raises:
        OSError: If the directory cannot be created.
    """
    path.mkdir(parents=True, exist_ok=True)
    set_secure_permissions(path, is_directory=True)


def _describe_validation_error(error: ValidationError) -> str:
    lines = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "(root)"
        lines.append(f"  - {field}: {item['msg']}")
    return "\n".join(lines)


def load_validated_json(
    file_path: Path,
    model_class: type[ModelT],
    file_type: str = "file",
    recovery_hint: str | None = None,
) -> ModelT:
    """Read a JSON file into a pydantic model.

    Args:
        file_path: File to read.
        model_class: Model the content must satisfy.
        file_type: Word used in messages ("config", "session").
        recovery_hint: Appended to validation failures to tell the user
            what to do next.

    Raises:
        FileNotFoundError: No file at file_path.
        ValueError: Unreadable file, malformed JSON or failed validation.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"{file_type.capitalize()} file not found at {file_path}.")

    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ValueError(f"Cannot read {file_type} file {file_path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_type} file {file_path}: {e}") from e

    try:
        return model_class.model_validate(data)
    except ValidationError as e:
        message = f"Invalid {file_type} in {file_path}:\n{_describe_validation_error(e)}"
        if recovery_hint:
            message = f"{message}\n\n{recovery_hint}"
        raise ValueError(message) from e


def write_text_atomic(path: Path, content: str) -> None:
    """Replace a file's content in one step.

    Writes to a temporary file in the same directory, sets owner-only
    permissions and renames it over the destination. Readers never see
    a half-written file.

    Raises:
        OSError: If writing or renaming fails. The temporary file is removed.
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with open(fd, "w", encoding="utf-8") as f:
            f.write(content)
        set_secure_permissions(tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
