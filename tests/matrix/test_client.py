"""Tests for MatrixConnection against a mocked homeserver.

Uses httpx.MockTransport so requests never leave the process.
Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from mx_login.exceptions import CredentialRejectedError, NotAuthenticatedError, TransportError
from mx_login.matrix.client import MatrixConnection
from mx_login.matrix.protocol import MatrixConnectionProtocol
from mx_login.session.models import UserSession

HOMESERVER = "https://matrix.example.org"

LOGIN_OK = {
    "user_id": "@alice:example.org",
    "device_id": "DEVICEA",
    "access_token": "syt_token",
    "home_server": "example.org",
}


def _connection(handler: Callable[[httpx.Request], httpx.Response]) -> MatrixConnection:
    return MatrixConnection(
        HOMESERVER,
        device_display_name="login client",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestListLoginFlows:
    """Tests for GET /login."""

    @pytest.mark.asyncio
    async def test_parses_flows_and_providers(self) -> None:
        """Given flows with identity providers, returns typed LoginFlow objects."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert str(request.url) == f"{HOMESERVER}/_matrix/client/v3/login"
            return httpx.Response(
                200,
                json={
                    "flows": [
                        {"type": "m.login.password"},
                        {
                            "type": "m.login.sso",
                            "identity_providers": [{"id": "github", "name": "GitHub", "brand": "github"}],
                        },
                        {"type": "m.login.token", "get_login_token": True},
                    ]
                },
            )

        # Act
        async with _connection(handler) as connection:
            flows = await connection.list_login_flows()

        # Assert
        assert [f.type for f in flows] == ["m.login.password", "m.login.sso", "m.login.token"]
        assert flows[1].identity_providers[0].id == "github"
        assert flows[1].identity_providers[0].brand == "github"

    @pytest.mark.asyncio
    async def test_malformed_body_is_transport_error(self) -> None:
        """Given flows that are not a list, raises TransportError."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"flows": "password"})

        # Act & Assert
        async with _connection(handler) as connection:
            with pytest.raises(TransportError, match="Malformed"):
                await connection.list_login_flows()

    @pytest.mark.asyncio
    async def test_network_failure_is_transport_error(self) -> None:
        """Given a connection error, raises TransportError."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        # Act & Assert
        async with _connection(handler) as connection:
            with pytest.raises(TransportError, match="connection refused"):
                await connection.list_login_flows()

    @pytest.mark.asyncio
    async def test_non_json_body_is_transport_error(self) -> None:
        """Given an HTML page, raises TransportError."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>proxy login</html>")

        # Act & Assert
        async with _connection(handler) as connection:
            with pytest.raises(TransportError, match="invalid JSON"):
                await connection.list_login_flows()


class TestPasswordLogin:
    """Tests for POST /login with m.login.password."""

    @pytest.mark.asyncio
    async def test_request_body_and_session(self) -> None:
        """Given accepted credentials, sends the documented body and stores the session."""
        # Arrange
        sent: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(json.loads(request.content))
            return httpx.Response(200, json=LOGIN_OK)

        # Act
        async with _connection(handler) as connection:
            session = await connection.login_with_password("alice", "hunter2", "my laptop")

            # Assert
            assert connection.session() == session
            assert connection.current_user_id() == "@alice:example.org"
        assert sent == [
            {
                "type": "m.login.password",
                "identifier": {"type": "m.id.user", "user": "alice"},
                "password": "hunter2",
                "initial_device_display_name": "my laptop",
            }
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("errcode", ["M_FORBIDDEN", "M_USER_DEACTIVATED", "M_INVALID_USERNAME"])
    async def test_credential_errcodes_are_rejections(self, errcode: str) -> None:
        """Given a credential-shaped errcode, raises CredentialRejectedError."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"errcode": errcode, "error": "Nope"})

        # Act & Assert
        async with _connection(handler) as connection:
            with pytest.raises(CredentialRejectedError) as exc_info:
                await connection.login_with_password("alice", "bad", "login client")
            assert connection.session() is None
        assert exc_info.value.errcode == errcode
        assert str(exc_info.value) == f"{errcode}: Nope"

    @pytest.mark.asyncio
    async def test_rate_limit_is_transport_error(self) -> None:
        """Given M_LIMIT_EXCEEDED, raises TransportError (not a retry)."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={"errcode": "M_LIMIT_EXCEEDED", "error": "Too many requests"})

        # Act & Assert
        async with _connection(handler) as connection:
            with pytest.raises(TransportError) as exc_info:
                await connection.login_with_password("alice", "pw", "login client")
        assert not isinstance(exc_info.value, CredentialRejectedError)
        assert exc_info.value.status_code == 429
        assert exc_info.value.errcode == "M_LIMIT_EXCEEDED"

    @pytest.mark.asyncio
    async def test_missing_fields_in_response(self) -> None:
        """Given a login response without access_token, raises TransportError."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"user_id": "@alice:example.org"})

        # Act & Assert
        async with _connection(handler) as connection:
            with pytest.raises(TransportError, match="Malformed login response"):
                await connection.login_with_password("alice", "pw", "login client")


class TestTokenLogin:
    """Tests for POST /login with m.login.token."""

    @pytest.mark.asyncio
    async def test_token_body_uses_configured_device_name(self) -> None:
        """Given a login token, sends m.login.token with the device display name."""
        # Arrange
        sent: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(json.loads(request.content))
            return httpx.Response(200, json=LOGIN_OK)

        # Act
        async with _connection(handler) as connection:
            await connection.login_with_token("abc123")

        # Assert
        assert sent == [
            {"type": "m.login.token", "token": "abc123", "initial_device_display_name": "login client"}
        ]

    @pytest.mark.asyncio
    async def test_forbidden_token_is_transport_error(self) -> None:
        """Given an expired token, raises TransportError."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"errcode": "M_FORBIDDEN", "error": "Invalid token"})

        # Act & Assert
        async with _connection(handler) as connection:
            with pytest.raises(TransportError) as exc_info:
                await connection.login_with_token("expired")
        assert not isinstance(exc_info.value, CredentialRejectedError)


class TestSsoLoginUrl:
    """Tests for the SSO redirect URL."""

    def test_generic_sso(self) -> None:
        """Given no provider, builds /login/sso/redirect with redirectUrl."""
        # Arrange
        connection = MatrixConnection(HOMESERVER)

        # Act
        url = urlparse(connection.sso_login_url("http://127.0.0.1:5000/"))

        # Assert
        assert url.path == "/_matrix/client/v3/login/sso/redirect"
        assert parse_qs(url.query) == {"redirectUrl": ["http://127.0.0.1:5000/"]}

    def test_provider_id_is_path_segment(self) -> None:
        """Given a provider id with reserved characters, it is percent-encoded."""
        # Arrange
        connection = MatrixConnection(HOMESERVER)

        # Act
        url = connection.sso_login_url("http://127.0.0.1:5000/", "oidc/corp sso")

        # Assert
        assert "/login/sso/redirect/oidc%2Fcorp%20sso?" in url


class TestSessionLifecycle:
    """Tests for restore_session, whoami and logout."""

    @pytest.mark.asyncio
    async def test_whoami_sends_bearer_token(self) -> None:
        """Given a restored session, whoami authenticates with its token."""
        # Arrange
        seen_auth: list[str | None] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen_auth.append(request.headers.get("Authorization"))
            return httpx.Response(200, json={"user_id": "@alice:example.org", "device_id": "DEVICEA"})

        # Act
        async with _connection(handler) as connection:
            connection.restore_session(
                UserSession(user_id="@alice:example.org", device_id="DEVICEA", access_token="syt_token")
            )
            user_id = await connection.whoami()

        # Assert
        assert user_id == "@alice:example.org"
        assert seen_auth == ["Bearer syt_token"]

    @pytest.mark.asyncio
    async def test_logout_clears_session(self) -> None:
        """Given a logged-in connection, logout posts /logout and forgets the session."""
        # Arrange
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            if request.url.path.endswith("/login"):
                return httpx.Response(200, json=LOGIN_OK)
            return httpx.Response(200, json={})

        # Act
        async with _connection(handler) as connection:
            await connection.login_with_password("alice", "pw", "login client")
            await connection.logout()

            # Assert
            assert connection.session() is None
        assert paths[-1] == "/_matrix/client/v3/logout"

    def test_current_user_id_before_login_raises(self) -> None:
        """Given no login yet, current_user_id raises NotAuthenticatedError."""
        # Act & Assert
        with pytest.raises(NotAuthenticatedError):
            MatrixConnection(HOMESERVER).current_user_id()

    @pytest.mark.asyncio
    async def test_whoami_without_session_raises(self) -> None:
        """Given no session, whoami raises before any request is made."""
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        # Act & Assert
        async with _connection(handler) as connection:
            with pytest.raises(NotAuthenticatedError):
                await connection.whoami()


class TestProtocolConformance:
    """MatrixConnection satisfies the protocol the login flow depends on."""

    def test_is_protocol_instance(self) -> None:
        """Given a MatrixConnection, isinstance check against the protocol passes."""
        # Act & Assert
        assert isinstance(MatrixConnection(HOMESERVER), MatrixConnectionProtocol)
