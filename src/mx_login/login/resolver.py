"""Login choice resolution.

One choice is taken as-is. Several choices are listed with a 0-based index
and the user is asked until they enter a valid one.
"""

from __future__ import annotations

__all__ = [
    "offer_choices",
    "parse_choice",
    "resolve_login_choice",
]

from collections.abc import Sequence
from typing import TYPE_CHECKING

from mx_login.login.choices import LoginChoice

if TYPE_CHECKING:
    from mx_login.login.console import LoginConsole


def parse_choice(raw: str, count: int) -> int | None:
    """Parse a menu entry.

    Args:
        raw: Line typed by the user.
        count: Number of choices on offer.

    Returns:
        Index in [0, count), or None if the input is not a valid choice.
    """
    value = raw.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    index = int(value)
    return index if index < count else None


def offer_choices(choices: Sequence[LoginChoice], console: "LoginConsole") -> LoginChoice:
    """List the choices and prompt until the user picks a valid one."""
    console.echo("Several options are available to login with this homeserver:")
    console.echo()

    while True:
        for idx, choice in enumerate(choices):
            console.echo(f"{idx}) {choice.label}")
        console.echo()

        index = parse_choice(console.prompt("Enter your choice"), len(choices))
        if index is not None:
            return choices[index]
        console.error("This is not a valid choice. Try again.")
        console.echo()


def resolve_login_choice(choices: Sequence[LoginChoice], console: "LoginConsole") -> LoginChoice:
    """Pick the login choice to use.

    Args:
        choices: Non-empty choices from discovery.
        console: Console to prompt on when there is more than one choice.

    Returns:
        The selected choice.
    """
    if not choices:
        # Discovery raises NoCompatibleLoginMethodError before we get here
        raise AssertionError("resolve_login_choice() called with no choices")
    if len(choices) == 1:
        return choices[0]
    return offer_choices(choices, console)
