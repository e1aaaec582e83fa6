"""Authenticators, one per login choice.

Each authenticator drives the connection to a logged-in state or raises.
The password authenticator re-prompts on rejected credentials without
limit; any other failure ends the run.
"""

from __future__ import annotations

__all__ = [
    "PasswordAttempt",
    "attempt_password_login",
    "authenticate",
    "login_with_password",
    "login_with_sso",
]

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, assert_never

from mx_login.constants import INITIAL_DEVICE_DISPLAY_NAME
from mx_login.exceptions import CredentialRejectedError
from mx_login.login.choices import LoginChoice, PasswordChoice, SsoChoice, SsoProviderChoice
from mx_login.utils.logging.system_logger import get_system_logger

if TYPE_CHECKING:
    from mx_login.login.console import LoginConsole
    from mx_login.matrix.models import IdentityProvider
    from mx_login.matrix.protocol import MatrixConnectionProtocol


@dataclass(frozen=True)
class PasswordAttempt:
    """Outcome of one username/password submission.

    Attributes:
        status: "success" or "retry" (credentials rejected).
        username: Username that was submitted.
        error_message: Homeserver's reason if status is "retry".
        errcode: Matrix error code if status is "retry".
    """

    status: Literal["success", "retry"]
    username: str
    error_message: str | None = None
    errcode: str | None = None


async def attempt_password_login(
    connection: "MatrixConnectionProtocol",
    username: str,
    password: str,
    device_display_name: str = INITIAL_DEVICE_DISPLAY_NAME,
) -> PasswordAttempt:
    """Submit credentials once.

    Returns:
        PasswordAttempt with status "success" or "retry".

    Raises:
        TransportError: For failures that are not about the credentials.
    """
    try:
        await connection.login_with_password(username, password, device_display_name)
    except CredentialRejectedError as e:
        return PasswordAttempt(status="retry", username=username, error_message=str(e), errcode=e.errcode)
    return PasswordAttempt(status="success", username=username)


async def login_with_password(
    connection: "MatrixConnectionProtocol",
    console: "LoginConsole",
    device_display_name: str = INITIAL_DEVICE_DISPLAY_NAME,
) -> str:
    """Prompt for username and password until the homeserver accepts them.

    Returns:
        The username that logged in.
    """
    logger = get_system_logger()
    console.echo("Logging in with username and password…")

    while True:
        console.echo()
        username = console.prompt("Username").strip()
        password = console.prompt("Password", hide_input=True).strip()

        attempt = await attempt_password_login(connection, username, password, device_display_name)
        if attempt.status == "success":
            console.echo(f"Logged in as {username}")
            logger.info(
                {
                    "event": "password_login_succeeded",
                    "message": f"Logged in as {username}",
                    "username": username,
                }
            )
            return username

        logger.warning(
            {
                "event": "password_login_rejected",
                "message": f"Homeserver rejected credentials for {username}",
                "username": username,
                "errcode": attempt.errcode,
            }
        )
        console.error(f"Error logging in: {attempt.error_message}")
        console.echo("Please try again")


async def login_with_sso(
    connection: "MatrixConnectionProtocol",
    console: "LoginConsole",
    provider: "IdentityProvider | None" = None,
) -> str:
    """Log in through SSO, optionally with a specific identity provider.

    Suspends until the user completes the browser flow.

    Returns:
        The logged-in user id.
    """
    logger = get_system_logger()
    console.echo("Logging in with SSO…")

    async def show_url(url: str) -> None:
        console.echo()
        console.echo(f"Open this URL in your browser: {url}")
        console.echo()
        console.open_url(url)
        console.echo("Waiting for login token…")

    provider_id = provider.id if provider is not None else None
    logger.info(
        {
            "event": "sso_login_started",
            "message": "Waiting for SSO login to complete",
            "identity_provider": provider_id,
        }
    )
    await connection.login_with_sso(provider_id, show_url)

    user_id = connection.current_user_id()
    console.echo(f"Logged in as {user_id}")
    logger.info(
        {
            "event": "sso_login_succeeded",
            "message": f"Logged in as {user_id}",
            "user_id": user_id,
            "identity_provider": provider_id,
        }
    )
    return user_id


async def authenticate(
    connection: "MatrixConnectionProtocol",
    choice: LoginChoice,
    console: "LoginConsole",
    *,
    device_display_name: str = INITIAL_DEVICE_DISPLAY_NAME,
) -> str:
    """Run the authenticator matching the choice.

    Returns:
        Username (password login) or user id (SSO login).
    """
    match choice:
        case PasswordChoice():
            return await login_with_password(connection, console, device_display_name)
        case SsoChoice():
            return await login_with_sso(connection, console)
        case SsoProviderChoice(provider=provider):
            return await login_with_sso(connection, console, provider)
        case _:
            assert_never(choice)
