"""Login flow discovery.

Maps the homeserver's login flows to the choices a user can pick:
- m.login.password              -> PasswordChoice
- m.login.sso, no providers     -> SsoChoice
- m.login.sso, N providers      -> N SsoProviderChoice, in server order
- m.login.token                 -> ignored (completes SSO, not a choice)
- m.login.application_service   -> ignored (application services only)
- anything else                 -> ignored
"""

from __future__ import annotations

__all__ = [
    "discover_login_choices",
    "login_choices_from_flows",
]

from collections.abc import Iterable
from typing import TYPE_CHECKING

from mx_login.constants import LOGIN_TYPE_PASSWORD, LOGIN_TYPE_SSO
from mx_login.exceptions import NoCompatibleLoginMethodError
from mx_login.login.choices import LoginChoice, PasswordChoice, SsoChoice, SsoProviderChoice
from mx_login.utils.logging.system_logger import get_system_logger

if TYPE_CHECKING:
    from mx_login.matrix.models import LoginFlow
    from mx_login.matrix.protocol import MatrixConnectionProtocol


def login_choices_from_flows(flows: Iterable["LoginFlow"]) -> list[LoginChoice]:
    """Translate login flows to choices, dropping duplicates.

    The first occurrence wins: a second password flow, a second bare SSO
    flow or a repeated identity provider id adds nothing.
    """
    choices: list[LoginChoice] = []
    seen: set[tuple[str, ...]] = set()

    def add(key: tuple[str, ...], choice: LoginChoice) -> None:
        if key not in seen:
            seen.add(key)
            choices.append(choice)

    for flow in flows:
        if flow.type == LOGIN_TYPE_PASSWORD:
            add(("password",), PasswordChoice())
        elif flow.type == LOGIN_TYPE_SSO:
            if not flow.identity_providers:
                add(("sso",), SsoChoice())
            for provider in flow.identity_providers:
                add(("sso", provider.id), SsoProviderChoice(provider))

    return choices


async def discover_login_choices(connection: "MatrixConnectionProtocol") -> list[LoginChoice]:
    """Ask the homeserver for its login flows and return the usable ones.

    Raises:
        NoCompatibleLoginMethodError: If no flow maps to a choice.
        TransportError: If the request fails.
    """
    flows = await connection.list_login_flows()
    choices = login_choices_from_flows(flows)

    get_system_logger().info(
        {
            "event": "login_flows_discovered",
            "message": f"Homeserver offers {len(choices)} usable login choice(s)",
            "flow_types": [flow.type for flow in flows],
            "choices": [choice.label for choice in choices],
        }
    )

    if not choices:
        raise NoCompatibleLoginMethodError("Homeserver login types incompatible with this client")
    return choices
