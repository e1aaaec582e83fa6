"""Session persistence.

Writes the session produced by a successful login to a JSON file so later
runs can rebuild the connection without logging in again.

The file is plain JSON protected only by owner-only permissions (0600).
If the system offers secure secret storage, that would be the better home
for the access token.
"""

from __future__ import annotations

__all__ = [
    "build_persisted_session",
    "delete_session",
    "load_session",
    "save_session",
]

from pathlib import Path
from typing import TYPE_CHECKING

from mx_login.exceptions import NotAuthenticatedError, PersistenceError
from mx_login.session.models import ClientSession, PersistedSession
from mx_login.utils.file_helpers import ensure_secure_directory, load_validated_json, write_text_atomic
from mx_login.utils.logging.system_logger import get_system_logger

if TYPE_CHECKING:
    from mx_login.matrix.protocol import MatrixConnectionProtocol


def build_persisted_session(
    client_session: ClientSession,
    connection: "MatrixConnectionProtocol",
) -> PersistedSession:
    """Assemble the record to persist after a successful login.

    Args:
        client_session: Descriptor returned when the connection was built.
        connection: Connection an authenticator has logged in.

    Returns:
        PersistedSession with no sync token yet.

    Raises:
        NotAuthenticatedError: If the connection has no user session.
    """
    user_session = connection.session()
    if user_session is None:
        raise NotAuthenticatedError("A logged-in connection should have a session")

    return PersistedSession(
        client_session=client_session,
        user_session=user_session,
        sync_token=None,
    )


def save_session(session_file: Path, session: PersistedSession) -> None:
    """Write the session to disk, replacing any previous content.

    Args:
        session_file: Destination path.
        session: Session to write.

    Raises:
        PersistenceError: If serialization or the write fails.
    """
    try:
        serialized = session.to_json()
    except ValueError as e:
        raise PersistenceError(f"Failed to serialize session: {e}") from e

    try:
        ensure_secure_directory(session_file.parent)
        write_text_atomic(session_file, serialized + "\n")
    except OSError as e:
        raise PersistenceError(f"Failed to write session file {session_file}: {e}") from e

    get_system_logger().info(
        {
            "event": "session_persisted",
            "message": f"Session persisted in {session_file}",
            "path": str(session_file),
            "user_id": session.user_session.user_id,
            "device_id": session.user_session.device_id,
        }
    )


def load_session(session_file: Path) -> PersistedSession:
    """Read a persisted session back.

    Raises:
        PersistenceError: If the file is missing, unreadable or invalid.
    """
    try:
        return load_validated_json(
            session_file,
            PersistedSession,
            file_type="session",
            recovery_hint="Run 'mx-login login' to create a new session.",
        )
    except (FileNotFoundError, ValueError) as e:
        raise PersistenceError(str(e)) from e


def delete_session(session_file: Path) -> bool:
    """Remove the session file.

    Returns:
        True if a file was removed, False if there was none.

    Raises:
        PersistenceError: If the file exists but cannot be removed.
    """
    try:
        session_file.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        raise PersistenceError(f"Failed to delete session file {session_file}: {e}") from e
    return True
