"""Command-line interface for mx-login.

Provides commands for logging in to a Matrix homeserver and managing the
persisted session.
"""

from .main import cli, main

__all__ = ["cli", "main"]
