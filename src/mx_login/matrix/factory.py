"""Connection factory: homeserver resolution, new clients, restored clients.

build_connection() is the only place a ClientSession is created. The login
flow receives it as an opaque value and writes it to the session file,
which restore_connection() later turns back into a logged-in connection.
"""

from __future__ import annotations

__all__ = [
    "build_connection",
    "resolve_homeserver",
    "restore_connection",
]

import secrets
import string
from pathlib import Path

import httpx

from mx_login.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    INITIAL_DEVICE_DISPLAY_NAME,
    STORE_DIR_NAME_LENGTH,
    STORE_PASSPHRASE_BYTES,
    WELL_KNOWN_CLIENT_PATH,
)
from mx_login.exceptions import HomeserverDiscoveryError
from mx_login.matrix.client import MatrixConnection
from mx_login.session.models import ClientSession, PersistedSession
from mx_login.utils.file_helpers import ensure_secure_directory
from mx_login.utils.logging.system_logger import get_system_logger

_STORE_NAME_ALPHABET = string.ascii_letters + string.digits


async def _well_known_base_url(client: httpx.AsyncClient, server_name: str) -> str | None:
    """Look up m.homeserver.base_url for a server name (None if absent)."""
    try:
        response = await client.get(f"https://{server_name}{WELL_KNOWN_CLIENT_PATH}")
    except httpx.HTTPError:
        return None
    if response.status_code != 200:
        return None

    try:
        body = response.json()
    except ValueError:
        return None
    homeserver = body.get("m.homeserver") if isinstance(body, dict) else None
    base_url = homeserver.get("base_url") if isinstance(homeserver, dict) else None
    return base_url.rstrip("/") if isinstance(base_url, str) and base_url else None


async def _supports_client_api(client: httpx.AsyncClient, homeserver: str) -> bool:
    try:
        response = await client.get(f"{homeserver}/_matrix/client/versions")
    except httpx.HTTPError:
        return False
    if response.status_code != 200:
        return False
    try:
        body = response.json()
    except ValueError:
        return False
    return isinstance(body, dict) and isinstance(body.get("versions"), list)


async def resolve_homeserver(
    server_name_or_url: str,
    *,
    timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    http_client: httpx.AsyncClient | None = None,
) -> str:
    """Turn user input into a homeserver base URL.

    URLs (anything with a scheme) are used as given. Bare server names go
    through .well-known discovery and fall back to https://<name>. The
    result must answer /_matrix/client/versions.

    Args:
        server_name_or_url: E.g. "example.org" or "https://matrix.example.org".
        timeout: Request timeout in seconds.
        http_client: Optional httpx client (for testing).

    Returns:
        Homeserver base URL without trailing slash.

    Raises:
        HomeserverDiscoveryError: If nothing usable answers.
    """
    value = server_name_or_url.strip()
    if not value:
        raise HomeserverDiscoveryError("Homeserver cannot be empty")

    client = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
    try:
        if "://" in value:
            homeserver = value.rstrip("/")
        else:
            server_name = value.rstrip("/")
            homeserver = await _well_known_base_url(client, server_name) or f"https://{server_name}"

        if not await _supports_client_api(client, homeserver):
            raise HomeserverDiscoveryError(f"No Matrix homeserver found at {homeserver}")
    finally:
        if http_client is None:
            await client.aclose()

    get_system_logger().info(
        {
            "event": "homeserver_resolved",
            "message": f"Using homeserver {homeserver}",
            "input": value,
            "homeserver": homeserver,
        }
    )
    return homeserver


async def build_connection(
    server_name_or_url: str,
    data_dir: Path,
    *,
    device_display_name: str = INITIAL_DEVICE_DISPLAY_NAME,
    timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    http_client: httpx.AsyncClient | None = None,
) -> tuple[MatrixConnection, ClientSession]:
    """Build a fresh connection and the descriptor needed to rebuild it.

    Each build gets its own store directory under data_dir (random name,
    owner-only permissions) and a random store passphrase.

    Args:
        server_name_or_url: Server name or homeserver URL.
        data_dir: Base data directory.
        device_display_name: Display name for devices created by SSO login.
        timeout: Request timeout in seconds.
        http_client: Optional httpx client (for testing).

    Returns:
        (connection, client_session)

    Raises:
        HomeserverDiscoveryError: If the homeserver cannot be resolved.
        OSError: If the store directory cannot be created.
    """
    homeserver = await resolve_homeserver(server_name_or_url, timeout=timeout, http_client=http_client)

    store_name = "".join(secrets.choice(_STORE_NAME_ALPHABET) for _ in range(STORE_DIR_NAME_LENGTH))
    db_path = data_dir / store_name
    ensure_secure_directory(db_path)

    client_session = ClientSession(
        homeserver=homeserver,
        db_path=str(db_path),
        passphrase=secrets.token_urlsafe(STORE_PASSPHRASE_BYTES),
    )
    connection = MatrixConnection(
        homeserver,
        device_display_name=device_display_name,
        timeout=timeout,
        http_client=http_client,
    )
    return connection, client_session


def restore_connection(
    persisted: PersistedSession,
    *,
    timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    http_client: httpx.AsyncClient | None = None,
) -> MatrixConnection:
    """Rebuild a logged-in connection from a persisted session."""
    connection = MatrixConnection(
        persisted.client_session.homeserver,
        timeout=timeout,
        http_client=http_client,
    )
    connection.restore_session(persisted.user_session)
    get_system_logger().info(
        {
            "event": "session_restored",
            "message": f"Restored session for {persisted.user_session.user_id}",
            "user_id": persisted.user_session.user_id,
            "device_id": persisted.user_session.device_id,
            "homeserver": persisted.client_session.homeserver,
        }
    )
    return connection
