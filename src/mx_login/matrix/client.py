"""Matrix client-server API connection used for login.

Implements MatrixConnectionProtocol over httpx.AsyncClient:
- GET  /_matrix/client/v3/login            login flows
- POST /_matrix/client/v3/login            m.login.password / m.login.token
- GET  /_matrix/client/v3/login/sso/redirect[/{idpId}]   (opened by the browser)
- GET  /_matrix/client/v3/account/whoami   verify a restored session
- POST /_matrix/client/v3/logout           invalidate the access token

Matrix error bodies ({"errcode": ..., "error": ...}) are mapped to
CredentialRejectedError when they describe bad credentials and to
TransportError otherwise.
"""

from __future__ import annotations

__all__ = ["MatrixConnection"]

from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urlencode

import httpx
from pydantic import ValidationError

from mx_login.constants import (
    CLIENT_API_PREFIX,
    CREDENTIAL_ERROR_CODES,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    INITIAL_DEVICE_DISPLAY_NAME,
    LOGIN_TYPE_PASSWORD,
    LOGIN_TYPE_TOKEN,
)
from mx_login.exceptions import CredentialRejectedError, NotAuthenticatedError, TransportError
from mx_login.matrix.models import LoginFlow, LoginFlowsResponse
from mx_login.matrix.sso import SsoCallbackServer
from mx_login.session.models import UserSession

if TYPE_CHECKING:
    from mx_login.matrix.protocol import UrlCallback


def _matrix_error(response: httpx.Response) -> tuple[str | None, str]:
    """Extract (errcode, message) from an error response."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        errcode = body.get("errcode")
        error = body.get("error") or response.reason_phrase
        if errcode:
            return errcode, f"{errcode}: {error}"
        return None, str(error)
    return None, f"HTTP {response.status_code} {response.reason_phrase}"


class MatrixConnection:
    """Connection to one homeserver.

    Holds the user session once a login succeeds (or after
    restore_session()). Not safe for concurrent logins.

    Usage:
        async with MatrixConnection("https://matrix.example.org") as conn:
            flows = await conn.list_login_flows()
            session = await conn.login_with_password("alice", "secret", "login client")
    """

    def __init__(
        self,
        homeserver: str,
        *,
        device_display_name: str = INITIAL_DEVICE_DISPLAY_NAME,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the connection.

        Args:
            homeserver: Homeserver base URL.
            device_display_name: Display name for devices created by SSO login.
            timeout: Request timeout in seconds.
            http_client: Optional httpx client (for testing).
        """
        self._homeserver = homeserver.rstrip("/")
        self._device_display_name = device_display_name
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None
        self._session: UserSession | None = None

    async def __aenter__(self) -> "MatrixConnection":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close HTTP client if we own it."""
        if self._owns_client:
            await self._client.aclose()

    @property
    def homeserver(self) -> str:
        return self._homeserver

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._homeserver}{CLIENT_API_PREFIX}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        authenticated: bool = False,
        credential_errors: bool = False,
    ) -> dict[str, Any]:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method.
            path: Path below the client API prefix.
            json: Optional JSON body.
            authenticated: Send the current access token.
            credential_errors: Map credential-shaped errcodes to
                CredentialRejectedError instead of TransportError.

        Raises:
            CredentialRejectedError: Credentials refused (credential_errors only).
            TransportError: Network failure, error status or non-JSON body.
        """
        headers: dict[str, str] = {}
        if authenticated:
            headers["Authorization"] = f"Bearer {self._require_session().access_token}"

        try:
            response = await self._client.request(method, self._url(path), json=json, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP error calling {path}: {e}") from e

        if response.is_error:
            errcode, message = _matrix_error(response)
            if credential_errors and errcode in CREDENTIAL_ERROR_CODES:
                raise CredentialRejectedError(message, errcode=errcode)
            raise TransportError(message, status_code=response.status_code, errcode=errcode)

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(f"Homeserver returned invalid JSON for {path}") from e
        if not isinstance(body, dict):
            raise TransportError(f"Homeserver returned unexpected JSON for {path}")
        return body

    def _require_session(self) -> UserSession:
        if self._session is None:
            raise NotAuthenticatedError("This connection has not logged in")
        return self._session

    # ------------------------------------------------------------------
    # MatrixConnectionProtocol
    # ------------------------------------------------------------------

    async def list_login_flows(self) -> list[LoginFlow]:
        """Fetch the login flows advertised by the homeserver."""
        body = await self._request("GET", "/login")
        try:
            return LoginFlowsResponse.model_validate(body).flows
        except ValidationError as e:
            raise TransportError(f"Malformed login flows response: {e}") from e

    async def login_with_password(
        self,
        username: str,
        password: str,
        device_display_name: str,
    ) -> UserSession:
        """Log in with a username (localpart or full user id) and password."""
        return await self._login(
            {
                "type": LOGIN_TYPE_PASSWORD,
                "identifier": {"type": "m.id.user", "user": username},
                "password": password,
                "initial_device_display_name": device_display_name,
            },
            credential_errors=True,
        )

    async def login_with_token(self, login_token: str) -> UserSession:
        """Exchange an SSO login token for a session."""
        return await self._login(
            {
                "type": LOGIN_TYPE_TOKEN,
                "token": login_token,
                "initial_device_display_name": self._device_display_name,
            },
        )

    async def login_with_sso(
        self,
        provider_id: str | None,
        url_callback: "UrlCallback",
    ) -> UserSession:
        """Log in through the homeserver's SSO redirect.

        Starts a loopback server for the redirect, hands the browser URL to
        url_callback, then suspends until the browser comes back with a
        login token, which is exchanged for a session.

        Args:
            provider_id: Identity provider to go straight to, or None to let
                the homeserver offer its own choice.
            url_callback: Surfaces the URL to the user.

        Raises:
            TransportError: If the redirect never completes or the token
                exchange fails.
        """
        async with SsoCallbackServer() as callback_server:
            await url_callback(self.sso_login_url(callback_server.redirect_url, provider_id))
            login_token = await callback_server.wait_for_token()
        return await self.login_with_token(login_token)

    def session(self) -> UserSession | None:
        return self._session

    def current_user_id(self) -> str:
        return self._require_session().user_id

    # ------------------------------------------------------------------
    # Session helpers
    # ------------------------------------------------------------------

    async def _login(self, body: dict[str, Any], *, credential_errors: bool = False) -> UserSession:
        data = await self._request("POST", "/login", json=body, credential_errors=credential_errors)
        try:
            session = UserSession.model_validate(data)
        except ValidationError as e:
            raise TransportError(f"Malformed login response: {e}") from e
        self._session = session
        return session

    def sso_login_url(self, redirect_url: str, provider_id: str | None = None) -> str:
        """Build the URL that starts the SSO flow in a browser."""
        path = "/login/sso/redirect"
        if provider_id is not None:
            path = f"{path}/{quote(provider_id, safe='')}"
        return f"{self._url(path)}?{urlencode({'redirectUrl': redirect_url})}"

    def restore_session(self, session: UserSession) -> None:
        """Reuse a previously persisted session without logging in."""
        self._session = session

    async def whoami(self) -> str:
        """Ask the homeserver who the access token belongs to."""
        body = await self._request("GET", "/account/whoami", authenticated=True)
        user_id = body.get("user_id")
        if not isinstance(user_id, str):
            raise TransportError("Malformed whoami response: missing user_id")
        return user_id

    async def logout(self) -> None:
        """Invalidate the access token on the homeserver."""
        await self._request("POST", "/logout", json={}, authenticated=True)
        self._session = None
