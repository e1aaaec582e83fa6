"""Matrix homeserver connection.

This package provides the collaborators the login flow talks to:
- MatrixConnection: client-server API calls over httpx
- SsoCallbackServer: loopback server that receives the SSO login token
- build_connection / restore_connection: connection factory
- MatrixConnectionProtocol: the interface the login flow depends on
"""

from mx_login.matrix.client import MatrixConnection
from mx_login.matrix.factory import build_connection, resolve_homeserver, restore_connection
from mx_login.matrix.models import IdentityProvider, LoginFlow
from mx_login.matrix.protocol import MatrixConnectionProtocol, UrlCallback
from mx_login.matrix.sso import SsoCallbackServer

__all__ = [
    # Connection
    "MatrixConnection",
    "MatrixConnectionProtocol",
    "UrlCallback",
    # Wire models
    "IdentityProvider",
    "LoginFlow",
    # SSO
    "SsoCallbackServer",
    # Factory
    "build_connection",
    "resolve_homeserver",
    "restore_connection",
]
