"""Shared fixtures for mx-login tests.

Provides an in-memory console fed with scripted input lines and a stub
Matrix connection whose login outcomes are set up per test.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from pathlib import Path

import pytest

from mx_login.exceptions import CredentialRejectedError
from mx_login.matrix.models import LoginFlow
from mx_login.matrix.protocol import UrlCallback
from mx_login.session.models import ClientSession, UserSession


class ScriptedConsole:
    """LoginConsole that reads from a list of lines and records output."""

    def __init__(self, lines: Iterable[str] = ()) -> None:
        self.inputs: deque[str] = deque(lines)
        self.output: list[str] = []
        self.errors: list[str] = []
        self.prompts: list[tuple[str, bool]] = []
        self.opened_urls: list[str] = []

    def echo(self, message: str = "") -> None:
        self.output.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def prompt(self, text: str, *, hide_input: bool = False) -> str:
        self.prompts.append((text, hide_input))
        if not self.inputs:
            raise AssertionError(f"Unexpected prompt: {text!r}")
        return self.inputs.popleft()

    def open_url(self, url: str) -> bool:
        self.opened_urls.append(url)
        return False


class StubConnection:
    """MatrixConnectionProtocol stand-in.

    password_outcomes holds one entry per expected password submission:
    None for success or an exception to raise.
    """

    def __init__(
        self,
        flows: list[LoginFlow],
        *,
        user_session: UserSession,
        password_outcomes: Iterable[Exception | None] = (),
        homeserver: str = "https://matrix.example.org",
    ) -> None:
        self.flows = flows
        self.user_session = user_session
        self.password_outcomes: deque[Exception | None] = deque(password_outcomes)
        self.homeserver = homeserver
        self.password_calls: list[tuple[str, str, str]] = []
        self.sso_calls: list[str | None] = []
        self._session: UserSession | None = None

    async def list_login_flows(self) -> list[LoginFlow]:
        return self.flows

    async def login_with_password(self, username: str, password: str, device_display_name: str) -> UserSession:
        self.password_calls.append((username, password, device_display_name))
        outcome = self.password_outcomes.popleft() if self.password_outcomes else None
        if outcome is not None:
            raise outcome
        self._session = self.user_session
        return self.user_session

    async def login_with_sso(self, provider_id: str | None, url_callback: UrlCallback) -> UserSession:
        self.sso_calls.append(provider_id)
        path = "/_matrix/client/v3/login/sso/redirect"
        if provider_id is not None:
            path = f"{path}/{provider_id}"
        await url_callback(f"{self.homeserver}{path}?redirectUrl=http%3A%2F%2F127.0.0.1%3A8765%2F")
        self._session = self.user_session
        return self.user_session

    def session(self) -> UserSession | None:
        return self._session

    def current_user_id(self) -> str:
        if self._session is None:
            raise AssertionError("not logged in")
        return self._session.user_id


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def alice_session() -> UserSession:
    """Session the homeserver issues to alice."""
    return UserSession(user_id="@alice:example.org", device_id="DEVICEA", access_token="syt_alice_token")


@pytest.fixture
def client_session(tmp_path: Path) -> ClientSession:
    """Descriptor for a client store under tmp_path."""
    return ClientSession(
        homeserver="https://matrix.example.org",
        db_path=str(tmp_path / "AbCd1234"),
        passphrase="store-passphrase",
    )


@pytest.fixture
def make_console():
    """Factory for ScriptedConsole instances."""
    return ScriptedConsole


@pytest.fixture
def make_connection(alice_session: UserSession):
    """Factory for StubConnection instances logging in as alice."""

    def _make(flows: list[LoginFlow], password_outcomes: Iterable[Exception | None] = ()) -> StubConnection:
        return StubConnection(flows, user_session=alice_session, password_outcomes=password_outcomes)

    return _make


@pytest.fixture
def rejected() -> CredentialRejectedError:
    """Rejection the homeserver returns for a wrong password."""
    return CredentialRejectedError("M_FORBIDDEN: Invalid username or password", errcode="M_FORBIDDEN")
