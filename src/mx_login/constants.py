"""Application-wide constants for mx-login.

Constants that define application behavior.
For user-configurable settings, see config.py.
"""

__all__ = [
    # Application identity
    "APP_NAME",
    "DEFAULT_DATA_DIR",
    "SESSION_FILENAME",
    "SYSTEM_LOG_FILENAME",
    # Login
    "INITIAL_DEVICE_DISPLAY_NAME",
    "LOGIN_TYPE_PASSWORD",
    "LOGIN_TYPE_SSO",
    "LOGIN_TYPE_TOKEN",
    "LOGIN_TYPE_APPLICATION_SERVICE",
    "CREDENTIAL_ERROR_CODES",
    # HTTP transport
    "DEFAULT_HTTP_TIMEOUT_SECONDS",
    "MIN_HTTP_TIMEOUT_SECONDS",
    "MAX_HTTP_TIMEOUT_SECONDS",
    "CLIENT_API_PREFIX",
    "WELL_KNOWN_CLIENT_PATH",
    # SSO loopback
    "SSO_CALLBACK_HOST",
    "SSO_CALLBACK_BACKLOG",
    "SSO_LANDING_PAGE",
    # Local store
    "STORE_DIR_NAME_LENGTH",
    "STORE_PASSPHRASE_BYTES",
]

import os

from platformdirs import user_data_dir

# ============================================================================
# Application Identity
# ============================================================================

# Application name used for directory names and logger names
APP_NAME: str = "mx-login"

# Platform-specific data directory for stores and the session file
# - macOS: ~/Library/Application Support/mx-login/
# - Linux: ~/.local/share/mx-login/
# - Windows: %LOCALAPPDATA%\mx-login\
DEFAULT_DATA_DIR: str = os.path.realpath(user_data_dir(APP_NAME))

SESSION_FILENAME: str = "session.json"
SYSTEM_LOG_FILENAME: str = "system.jsonl"

# ============================================================================
# Login
# ============================================================================

# Display name given to the device the first time it logs in
INITIAL_DEVICE_DISPLAY_NAME: str = "login client"

# Login flow types from GET /_matrix/client/v3/login
LOGIN_TYPE_PASSWORD: str = "m.login.password"
LOGIN_TYPE_SSO: str = "m.login.sso"
LOGIN_TYPE_TOKEN: str = "m.login.token"
LOGIN_TYPE_APPLICATION_SERVICE: str = "m.login.application_service"

# Matrix errcodes that mean "these credentials are not acceptable".
# Anything else from /login (rate limits, server errors) is a transport failure.
CREDENTIAL_ERROR_CODES: frozenset[str] = frozenset(
    {
        "M_FORBIDDEN",
        "M_USER_DEACTIVATED",
        "M_INVALID_USERNAME",
        "M_INVALID_PARAM",
        "M_MISSING_PARAM",
    }
)

# ============================================================================
# HTTP Transport
# ============================================================================

DEFAULT_HTTP_TIMEOUT_SECONDS: int = 30
MIN_HTTP_TIMEOUT_SECONDS: int = 1
MAX_HTTP_TIMEOUT_SECONDS: int = 300

CLIENT_API_PREFIX: str = "/_matrix/client/v3"
WELL_KNOWN_CLIENT_PATH: str = "/.well-known/matrix/client"

# ============================================================================
# SSO Loopback Server
# ============================================================================

# The identity provider redirects the browser here with ?loginToken=...
SSO_CALLBACK_HOST: str = "127.0.0.1"
SSO_CALLBACK_BACKLOG: int = 8

SSO_LANDING_PAGE: str = (
    "<!DOCTYPE html><html><head><meta charset='utf-8'><title>mx-login</title></head>"
    "<body><p>The Single Sign-On login process is complete. "
    "You can close this page now.</p></body></html>"
)

# ============================================================================
# Local Store
# ============================================================================

# Store directories are named with a random alphanumeric id under data_dir
STORE_DIR_NAME_LENGTH: int = 8
STORE_PASSPHRASE_BYTES: int = 24
