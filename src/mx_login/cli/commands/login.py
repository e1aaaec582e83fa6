"""Login command for mx-login CLI.

Runs the interactive login against a homeserver and persists the session.
Configuration comes from the config file; options override it.
"""

from __future__ import annotations

__all__ = ["login"]

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

import click

from mx_login.exceptions import HomeserverDiscoveryError, LoginFailure, PersistenceError
from mx_login.login.console import ClickConsole
from mx_login.login.flow import login_new, run_login
from mx_login.matrix.factory import build_connection

from ..helpers import exit_with_failure, load_config_or_exit, resolve_session_path, setup_logging

if TYPE_CHECKING:
    from mx_login.config import LoginConfig
    from mx_login.matrix.client import MatrixConnection
    from mx_login.session.models import ClientSession


async def _connect_interactively(
    config: "LoginConfig",
    console: ClickConsole,
) -> tuple["MatrixConnection", "ClientSession"]:
    """Prompt for a homeserver until one resolves."""
    while True:
        server = console.prompt("Homeserver").strip()
        try:
            return await build_connection(
                server,
                config.data_path,
                device_display_name=config.device_display_name,
                timeout=config.http_timeout,
            )
        except HomeserverDiscoveryError as e:
            console.error(f"Error: {e}")


async def _run(config: "LoginConfig", session_path: Path, console: ClickConsole) -> None:
    if config.homeserver:
        connection = await login_new(
            config.homeserver,
            config.data_path,
            session_path,
            console,
            device_display_name=config.device_display_name,
            timeout=config.http_timeout,
        )
        await connection.aclose()
        return

    connection, client_session = await _connect_interactively(config, console)
    async with connection:
        await run_login(
            connection,
            client_session,
            session_path,
            console,
            device_display_name=config.device_display_name,
        )


@click.command()
@click.option("--homeserver", "-s", help="Server name (example.org) or homeserver URL")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Directory for local stores and logs")
@click.option("--session-file", type=click.Path(dir_okay=False), help="Where to write the session")
@click.option("--no-browser", is_flag=True, help="Do not open SSO URLs in a browser")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), help="Config file path")
@click.option("--verbose", is_flag=True, help="Show progress logs on stderr")
def login(
    homeserver: str | None,
    data_dir: str | None,
    session_file: str | None,
    no_browser: bool,
    config_path: Path | None,
    verbose: bool,
) -> None:
    """Log in to a Matrix homeserver and save the session.

    Asks for the homeserver if it is neither configured nor given. When the
    homeserver offers several login methods you are asked to pick one.
    """
    config = load_config_or_exit(config_path)
    overrides: dict[str, object] = {}
    if homeserver:
        overrides["homeserver"] = homeserver
    if data_dir:
        overrides["data_dir"] = data_dir
    if no_browser:
        overrides["open_browser"] = False
    config = config.model_copy(update=overrides)

    session_path = resolve_session_path(config, session_file)
    setup_logging(config, verbose=verbose)
    console = ClickConsole(open_browser=config.open_browser)

    try:
        asyncio.run(_run(config, session_path, console))
    except LoginFailure as e:
        exit_with_failure(e, event="login_failed", terminal_message=f"Login failed: {e}")
    except OSError as e:
        # Store directory creation under data_dir
        exit_with_failure(
            PersistenceError(str(e)),
            event="login_failed",
            terminal_message=f"Cannot prepare data directory: {e}",
            extra_terminal_lines=["  Check --data-dir or the data_dir config value."],
        )
