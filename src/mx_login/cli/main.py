"""Main CLI entry point for mx-login.

Defines the CLI group and registers all subcommands.

Commands:
    login    - Log in to a homeserver and persist the session
    session  - Persisted session commands (show, whoami, logout)
    config   - Config file commands (path, show, init)

Subcommand help:
    mx-login COMMAND -h         Show help for a specific command
"""

from __future__ import annotations

__all__ = ["cli"]

import sys

import click

from mx_login import __version__

from .commands.config import config
from .commands.login import login
from .commands.session import session


class ReorderedGroup(click.Group):
    """Custom group that shows commands before custom help text."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Add extra help after commands section."""
        formatter.write(
            """
Quick Start:
  mx-login login                        Ask for the homeserver, then log in
  mx-login login -s example.org         Log in to example.org
  mx-login session whoami               Check the saved session
  mx-login config init -s example.org   Save a default homeserver

Session file:
  Written to <data dir>/session.json unless --session-file or the
  session_file config value says otherwise.
"""
        )


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """mx-login: Interactive Matrix login client."""
    if version:
        click.echo(f"mx-login {__version__}")
        sys.exit(0)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(login)
cli.add_command(session)
cli.add_command(config)


def main() -> None:
    """CLI entry point."""
    cli()
