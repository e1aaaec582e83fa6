"""Terminal styling for mx-login command output.

Headers and field labels are cyan, outcomes carry a green check or a red
cross, secondary notes are dimmed.
"""

from __future__ import annotations

__all__ = [
    "style_dim",
    "style_error",
    "style_field",
    "style_header",
    "style_success",
]

import click


def style_header(title: str) -> str:
    """`--- Session ---` style section title."""
    return click.style(f"--- {title} ---", fg="cyan", bold=True)


def style_field(label: str, value: str) -> str:
    """Indented `Label: value` line with a highlighted label."""
    return f"  {click.style(label + ':', fg='cyan', bold=True)} {value}"


def style_success(message: str) -> str:
    return click.style(f"✓ {message}", fg="green")


def style_error(message: str) -> str:
    """Red `✗ message` for stderr."""
    return click.style(f"✗ {message}", fg="red")


def style_dim(message: str) -> str:
    return click.style(message, dim=True)
