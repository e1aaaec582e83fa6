"""Wire models for the Matrix login API.

Parsed from GET /_matrix/client/v3/login:

    {
      "flows": [
        {"type": "m.login.password"},
        {"type": "m.login.sso", "identity_providers": [{"id": "oidc-github", "name": "GitHub"}]},
        {"type": "m.login.token"}
      ]
    }
"""

from __future__ import annotations

__all__ = [
    "IdentityProvider",
    "LoginFlow",
    "LoginFlowsResponse",
]

from pydantic import BaseModel, Field


class IdentityProvider(BaseModel):
    """SSO identity provider advertised by the homeserver.

    Attributes:
        id: Stable identifier, passed back in the SSO redirect URL.
        name: Human-readable name, for display only.
        icon: Optional mxc:// icon URI.
        brand: Optional brand hint (e.g. "github").
    """

    id: str = Field(min_length=1)
    name: str
    icon: str | None = None
    brand: str | None = None

    model_config = {"frozen": True, "extra": "ignore"}


class LoginFlow(BaseModel):
    """One login flow entry.

    Attributes:
        type: Login type (e.g. "m.login.password"). Unknown types are kept
            so callers can decide to ignore them.
        identity_providers: SSO providers (only meaningful for m.login.sso).
    """

    type: str
    identity_providers: list[IdentityProvider] = Field(default_factory=list)

    model_config = {"frozen": True, "extra": "ignore"}


class LoginFlowsResponse(BaseModel):
    """Body of GET /_matrix/client/v3/login."""

    flows: list[LoginFlow] = Field(default_factory=list)

    model_config = {"extra": "ignore"}
