"""Session commands for mx-login CLI.

Commands:
    session show   - Show the persisted session (never prints tokens)
    session whoami - Check the persisted session against the homeserver
    session logout - Invalidate the session on the server and delete it
"""

from __future__ import annotations

__all__ = ["session"]

import asyncio
from pathlib import Path

import click

from mx_login.config import LoginConfig
from mx_login.exceptions import LoginFailure, TransportError
from mx_login.matrix.factory import restore_connection
from mx_login.session.models import PersistedSession
from mx_login.session.persistence import delete_session, load_session

from ..helpers import exit_with_failure, load_config_or_exit, resolve_session_path, setup_logging
from ..styling import style_dim, style_field, style_header, style_success

_session_file_option = click.option(
    "--session-file",
    type=click.Path(dir_okay=False),
    help="Session file (default: from config)",
)
_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file path",
)


def _load(config_path: Path | None, session_file: str | None) -> tuple[LoginConfig, Path, PersistedSession]:
    config = load_config_or_exit(config_path)
    setup_logging(config)
    session_path = resolve_session_path(config, session_file)
    try:
        persisted = load_session(session_path)
    except LoginFailure as e:
        exit_with_failure(e, event="session_load_failed", terminal_message=str(e))
    return config, session_path, persisted


@click.group()
def session() -> None:
    """Persisted session commands."""
    pass


@session.command("show")
@_session_file_option
@_config_option
def session_show(session_file: str | None, config_path: Path | None) -> None:
    """Show the persisted session."""
    _, session_path, persisted = _load(config_path, session_file)

    click.echo(style_header("Session"))
    click.echo(style_field("File", str(session_path)))
    click.echo(style_field("Homeserver", persisted.client_session.homeserver))
    click.echo(style_field("User", persisted.user_session.user_id))
    click.echo(style_field("Device", persisted.user_session.device_id))
    click.echo(style_field("Store", persisted.client_session.db_path))
    if persisted.sync_token is None:
        click.echo(style_field("Sync token", style_dim("(none)")))
    else:
        click.echo(style_field("Sync token", "present"))


@session.command("whoami")
@_session_file_option
@_config_option
def session_whoami(session_file: str | None, config_path: Path | None) -> None:
    """Ask the homeserver who the persisted session belongs to."""
    config, _, persisted = _load(config_path, session_file)

    async def _whoami() -> str:
        async with restore_connection(persisted, timeout=config.http_timeout) as connection:
            return await connection.whoami()

    try:
        user_id = asyncio.run(_whoami())
    except LoginFailure as e:
        exit_with_failure(e, event="whoami_failed", terminal_message=f"Session check failed: {e}")

    click.echo(style_success(f"Session valid for {user_id}"))
    if user_id != persisted.user_session.user_id:
        click.echo(f"  Session file says {persisted.user_session.user_id}", err=True)


@session.command("logout")
@_session_file_option
@_config_option
def session_logout(session_file: str | None, config_path: Path | None) -> None:
    """Log out on the homeserver and delete the session file.

    A token the homeserver no longer knows still gets its file deleted.
    """
    config, session_path, persisted = _load(config_path, session_file)

    async def _logout() -> None:
        async with restore_connection(persisted, timeout=config.http_timeout) as connection:
            await connection.logout()

    try:
        asyncio.run(_logout())
    except TransportError as e:
        if e.errcode != "M_UNKNOWN_TOKEN":
            exit_with_failure(e, event="logout_failed", terminal_message=f"Logout failed: {e}")
        click.echo(style_dim("Access token was already invalid"))

    try:
        delete_session(session_path)
    except LoginFailure as e:
        exit_with_failure(e, event="logout_failed", terminal_message=str(e))

    click.echo(style_success(f"Logged out {persisted.user_session.user_id}"))
    click.echo(style_dim(f"  Deleted {session_path}"))
