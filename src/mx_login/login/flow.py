"""Login orchestration.

Phases run strictly in order, once per invocation:
1. discover the login choices the homeserver supports
2. resolve which one to use (asking the user if there are several)
3. authenticate with it
4. persist the resulting session

Any failure propagates to the caller; nothing is written before phase 4.
"""

from __future__ import annotations

__all__ = [
    "login_new",
    "run_login",
]

from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from mx_login.constants import DEFAULT_HTTP_TIMEOUT_SECONDS, INITIAL_DEVICE_DISPLAY_NAME
from mx_login.login.authenticators import authenticate
from mx_login.login.discovery import discover_login_choices
from mx_login.login.resolver import resolve_login_choice
from mx_login.matrix.factory import build_connection
from mx_login.session.persistence import build_persisted_session, save_session
from mx_login.utils.logging.system_logger import get_system_logger

if TYPE_CHECKING:
    from mx_login.login.console import LoginConsole
    from mx_login.matrix.client import MatrixConnection
    from mx_login.matrix.protocol import MatrixConnectionProtocol
    from mx_login.session.models import ClientSession, PersistedSession


async def run_login(
    connection: "MatrixConnectionProtocol",
    client_session: "ClientSession",
    session_file: Path,
    console: "LoginConsole",
    *,
    device_display_name: str = INITIAL_DEVICE_DISPLAY_NAME,
) -> "PersistedSession":
    """Log in on an existing connection and persist the session.

    Args:
        connection: Connection that has not logged in yet.
        client_session: Descriptor returned with the connection.
        session_file: Where to write the session.
        console: Console for prompts.
        device_display_name: Display name for the new device.

    Returns:
        The session that was written.

    Raises:
        NoCompatibleLoginMethodError: Homeserver offers no usable login flow.
        TransportError: Network or protocol failure.
        PersistenceError: Session file could not be written.
    """
    choices = await discover_login_choices(connection)
    choice = resolve_login_choice(choices, console)
    get_system_logger().info(
        {
            "event": "login_choice_selected",
            "message": f"Logging in with {choice.label}",
            "choice": choice.label,
        }
    )

    await authenticate(connection, choice, console, device_display_name=device_display_name)

    persisted = build_persisted_session(client_session, connection)
    save_session(session_file, persisted)
    console.echo(f"Session persisted in {session_file}")
    return persisted


async def login_new(
    server_name_or_url: str,
    data_dir: Path,
    session_file: Path,
    console: "LoginConsole",
    *,
    device_display_name: str = INITIAL_DEVICE_DISPLAY_NAME,
    timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    http_client: httpx.AsyncClient | None = None,
) -> "MatrixConnection":
    """Build a connection to the homeserver, log in and persist the session.

    Returns:
        The logged-in connection. The caller owns it and must close it.
    """
    connection, client_session = await build_connection(
        server_name_or_url,
        data_dir,
        device_display_name=device_display_name,
        timeout=timeout,
        http_client=http_client,
    )
    try:
        await run_login(
            connection,
            client_session,
            session_file,
            console,
            device_display_name=device_display_name,
        )
    except BaseException:
        await connection.aclose()
        raise
    return connection
