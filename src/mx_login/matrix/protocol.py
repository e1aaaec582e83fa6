"""Protocol definition for the homeserver connection.

The login flow only depends on this interface, not on MatrixConnection.
Tests drive the flow with in-memory stubs that implement it structurally.
"""

from __future__ import annotations

__all__ = [
    "MatrixConnectionProtocol",
    "UrlCallback",
]

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from mx_login.matrix.models import LoginFlow
    from mx_login.session.models import UserSession

# Called with the URL the user must open to finish SSO.
# Returning normally reports success; raising aborts the login.
UrlCallback = Callable[[str], Awaitable[None]]


@runtime_checkable
class MatrixConnectionProtocol(Protocol):
    """Operations the login flow needs from a homeserver connection.

    Required methods:
    - list_login_flows(): Login flows supported by the homeserver
    - login_with_password(): Username/password login
    - login_with_sso(): Browser-based login, optionally for one provider
    - session(): User session once logged in, None before
    - current_user_id(): Logged-in user id (post-authentication only)

    Error contract:
    - CredentialRejectedError: Credentials refused (password login only)
    - TransportError: Network, HTTP or protocol failure
    """

    async def list_login_flows(self) -> list["LoginFlow"]:
        """Fetch the login flows advertised by the homeserver."""
        ...

    async def login_with_password(
        self,
        username: str,
        password: str,
        device_display_name: str,
    ) -> "UserSession":
        """Log in with a username and password."""
        ...

    async def login_with_sso(
        self,
        provider_id: str | None,
        url_callback: UrlCallback,
    ) -> "UserSession":
        """Log in through the homeserver's SSO redirect.

        Suspends until the browser flow completes out-of-band.
        """
        ...

    def session(self) -> "UserSession | None":
        """Current user session, or None if not logged in."""
        ...

    def current_user_id(self) -> str:
        """User id of the logged-in user.

        Raises:
            NotAuthenticatedError: If no login has succeeded.
        """
        ...
