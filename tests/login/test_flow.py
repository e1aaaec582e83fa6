"""End-to-end tests for the login flow.

Runs discovery -> resolution -> authentication -> persistence against a
stub connection and scripted console, checking what lands on disk.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

import json
from pathlib import Path
from urllib.parse import urlparse

import httpx
import pytest

from mx_login.exceptions import NoCompatibleLoginMethodError, PersistenceError
from mx_login.login.flow import login_new, run_login
from mx_login.matrix.models import LoginFlow

PASSWORD = LoginFlow(type="m.login.password")
SSO = LoginFlow(type="m.login.sso")


class TestRunLogin:
    """Tests for run_login."""

    @pytest.mark.asyncio
    async def test_password_scenario_writes_session(
        self, tmp_path: Path, make_connection, make_console, client_session, rejected
    ) -> None:
        """Given a wrong then a correct password, retries and writes alice's session with no sync token."""
        # Arrange
        connection = make_connection([PASSWORD], password_outcomes=[rejected, None])
        console = make_console(["alice", "wrong", "alice", "correct"])
        session_file = tmp_path / "session.json"

        # Act
        persisted = await run_login(connection, client_session, session_file, console)

        # Assert
        data = json.loads(session_file.read_text())
        assert data["user_session"]["user_id"] == "@alice:example.org"
        assert data["client_session"] == client_session.model_dump()
        assert data["sync_token"] is None
        assert [call[:2] for call in connection.password_calls] == [("alice", "wrong"), ("alice", "correct")]
        assert len(console.errors) == 1
        assert persisted.user_session.user_id == "@alice:example.org"
        assert console.output[-1] == f"Session persisted in {session_file}"

    @pytest.mark.asyncio
    async def test_sso_and_password_choose_sso(
        self, tmp_path: Path, make_connection, make_console, client_session
    ) -> None:
        """Given [SSO, password] and input "0", the URL callback fires exactly once."""
        # Arrange
        connection = make_connection([SSO, PASSWORD])
        console = make_console(["0"])

        # Act
        await run_login(connection, client_session, tmp_path / "session.json", console)

        # Assert
        assert connection.sso_calls == [None]
        assert connection.password_calls == []
        assert len(console.opened_urls) == 1
        assert urlparse(console.opened_urls[0]).scheme in ("http", "https")

    @pytest.mark.asyncio
    async def test_device_display_name_is_forwarded(
        self, tmp_path: Path, make_connection, make_console, client_session
    ) -> None:
        """Given a custom device name, the password login uses it."""
        # Arrange
        connection = make_connection([PASSWORD])
        console = make_console(["alice", "hunter2"])

        # Act
        await run_login(
            connection,
            client_session,
            tmp_path / "session.json",
            console,
            device_display_name="work laptop",
        )

        # Assert
        assert connection.password_calls[0][2] == "work laptop"

    @pytest.mark.asyncio
    async def test_no_compatible_method_writes_nothing(
        self, tmp_path: Path, make_connection, make_console, client_session
    ) -> None:
        """Given only token login, raises and leaves no session file."""
        # Arrange
        connection = make_connection([LoginFlow(type="m.login.token")])
        session_file = tmp_path / "session.json"

        # Act & Assert
        with pytest.raises(NoCompatibleLoginMethodError):
            await run_login(connection, client_session, session_file, make_console([]))
        assert not session_file.exists()

    @pytest.mark.asyncio
    async def test_overwrites_existing_session(
        self, tmp_path: Path, make_connection, make_console, client_session
    ) -> None:
        """Given an existing session file, its content is replaced."""
        # Arrange
        session_file = tmp_path / "session.json"
        session_file.write_text("stale")
        connection = make_connection([PASSWORD])

        # Act
        await run_login(connection, client_session, session_file, make_console(["alice", "pw"]))

        # Assert
        assert json.loads(session_file.read_text())["sync_token"] is None

    @pytest.mark.asyncio
    async def test_unwritable_destination_raises_persistence_error(
        self, tmp_path: Path, make_connection, make_console, client_session
    ) -> None:
        """Given a session path under a regular file, raises PersistenceError."""
        # Arrange
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        connection = make_connection([PASSWORD])

        # Act & Assert
        with pytest.raises(PersistenceError):
            await run_login(connection, client_session, blocker / "session.json", make_console(["alice", "pw"]))


def _homeserver_transport(login_calls: list[dict]) -> httpx.MockTransport:
    """Minimal homeserver: versions, password-only flows, accepts any password."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/.well-known/matrix/client":
            return httpx.Response(404)
        if path == "/_matrix/client/versions":
            return httpx.Response(200, json={"versions": ["v1.11"]})
        if path == "/_matrix/client/v3/login" and request.method == "GET":
            return httpx.Response(200, json={"flows": [{"type": "m.login.password"}]})
        if path == "/_matrix/client/v3/login" and request.method == "POST":
            login_calls.append(json.loads(request.content))
            return httpx.Response(
                200,
                json={"user_id": "@alice:example.org", "device_id": "NEWDEV", "access_token": "syt_new"},
            )
        return httpx.Response(404, json={"errcode": "M_UNRECOGNIZED", "error": "Unrecognized request"})

    return httpx.MockTransport(handler)


class TestLoginNew:
    """Tests for login_new with the real connection over a mocked transport."""

    @pytest.mark.asyncio
    async def test_full_password_login(self, tmp_path: Path, make_console) -> None:
        """Given a server name, resolves it, logs in and writes the session."""
        # Arrange
        login_calls: list[dict] = []
        data_dir = tmp_path / "data"
        session_file = data_dir / "session.json"

        # Act
        async with httpx.AsyncClient(transport=_homeserver_transport(login_calls)) as http_client:
            connection = await login_new(
                "example.org",
                data_dir,
                session_file,
                make_console(["alice", "hunter2"]),
                device_display_name="login client",
                http_client=http_client,
            )
            await connection.aclose()

        # Assert
        data = json.loads(session_file.read_text())
        assert data["client_session"]["homeserver"] == "https://example.org"
        assert Path(data["client_session"]["db_path"]).parent == data_dir
        assert Path(data["client_session"]["db_path"]).is_dir()
        assert data["user_session"]["device_id"] == "NEWDEV"
        assert login_calls[0]["identifier"] == {"type": "m.id.user", "user": "alice"}
        assert login_calls[0]["initial_device_display_name"] == "login client"
