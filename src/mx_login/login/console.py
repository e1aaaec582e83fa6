"""Line-based console used by the interactive parts of the login flow.

The resolver and authenticators only talk to LoginConsole. ClickConsole is
the terminal implementation; tests script one in memory.
"""

from __future__ import annotations

__all__ = [
    "ClickConsole",
    "LoginConsole",
]

import webbrowser
from typing import Protocol, runtime_checkable

import click


@runtime_checkable
class LoginConsole(Protocol):
    """Prompts and messages for the login flow."""

    def echo(self, message: str = "") -> None:
        """Print an informational line."""
        ...

    def error(self, message: str) -> None:
        """Print an error line."""
        ...

    def prompt(self, text: str, *, hide_input: bool = False) -> str:
        """Read one line of input (may be empty)."""
        ...

    def open_url(self, url: str) -> bool:
        """Try to open a URL for the user. Returns True if it did."""
        ...


class ClickConsole:
    """LoginConsole on top of click's terminal helpers."""

    def __init__(self, *, open_browser: bool = True) -> None:
        self._open_browser = open_browser

    def echo(self, message: str = "") -> None:
        click.echo(message)

    def error(self, message: str) -> None:
        click.echo(click.style(message, fg="red"), err=True)

    def prompt(self, text: str, *, hide_input: bool = False) -> str:
        # default="" so an empty line is returned instead of re-prompting
        value: str = click.prompt(text, type=str, default="", show_default=False, hide_input=hide_input)
        return value

    def open_url(self, url: str) -> bool:
        if not self._open_browser:
            return False
        try:
            opened = webbrowser.open(url)
        except webbrowser.Error as e:
            click.echo(f"  (Could not open browser automatically: {e})")
            return False
        if opened:
            click.echo("  Browser opened automatically.")
        return opened
