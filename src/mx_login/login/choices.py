"""Login choices offered to the user.

A LoginChoice is one of exactly three variants. The set is fixed by the
Matrix login API; authenticators dispatch on it with a single match.
"""

from __future__ import annotations

__all__ = [
    "LoginChoice",
    "PasswordChoice",
    "SsoChoice",
    "SsoProviderChoice",
]

from dataclasses import dataclass

from mx_login.matrix.models import IdentityProvider


@dataclass(frozen=True)
class PasswordChoice:
    """Login with username and password."""

    @property
    def label(self) -> str:
        return "Username and password"


@dataclass(frozen=True)
class SsoChoice:
    """Login with SSO, letting the homeserver pick the provider."""

    @property
    def label(self) -> str:
        return "SSO"


@dataclass(frozen=True)
class SsoProviderChoice:
    """Login with a specific SSO identity provider.

    Attributes:
        provider: Provider as advertised by the homeserver.
    """

    provider: IdentityProvider

    @property
    def label(self) -> str:
        return f"SSO via {self.provider.name}"


LoginChoice = PasswordChoice | SsoChoice | SsoProviderChoice
