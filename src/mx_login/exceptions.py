"""Custom exceptions for mx-login.

Exceptions are organized into two categories:

Recoverable Errors (login loop continues):
    - CredentialRejectedError: Homeserver refused a username/password pair

Fatal Failures (login run aborts):
    - LoginFailure: Base for failures surfaced to the caller
    - NoCompatibleLoginMethodError: Homeserver offers nothing we can drive
    - TransportError: Network, HTTP or protocol failure
    - HomeserverDiscoveryError: Homeserver could not be resolved
    - PersistenceError: Session could not be serialized or written
    - ConfigurationError: Config file invalid

Invariant Violations:
    - NotAuthenticatedError: Session requested before any login succeeded

Usage:
    from mx_login.exceptions import CredentialRejectedError, TransportError
"""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
    "CredentialRejectedError",
    "HomeserverDiscoveryError",
    "LoginFailure",
    "NoCompatibleLoginMethodError",
    "NotAuthenticatedError",
    "PersistenceError",
    "TransportError",
]


class LoginFailure(Exception):
    """Base exception for failures that end the login run.

    Subclasses define specific failure types with distinct exit codes
    so scripts wrapping the CLI can tell them apart.

    Attributes:
        exit_code: Process exit code.
        failure_type: Category string for logging.
    """

    exit_code: int = 1
    failure_type: str = "unknown"


class NoCompatibleLoginMethodError(LoginFailure):
    """Homeserver advertises no login flow this client can drive.

    Raised when the flow list only contains token, application-service
    or unknown login types. Never retried.
    """

    exit_code = 20
    failure_type = "no_compatible_login_method"


class CredentialRejectedError(LoginFailure):
    """Homeserver rejected the submitted credentials.

    The password authenticator catches this and prompts again. It only
    reaches the caller if raised outside of that loop.

    Attributes:
        errcode: Matrix error code (e.g. "M_FORBIDDEN").
    """

    exit_code = 21
    failure_type = "credential_rejected"

    def __init__(self, message: str, *, errcode: str | None = None) -> None:
        super().__init__(message)
        self.errcode = errcode


class TransportError(LoginFailure):
    """Network, HTTP or protocol-level failure talking to the homeserver.

    Attributes:
        status_code: HTTP status if a response was received.
        errcode: Matrix error code if the body carried one.
    """

    exit_code = 22
    failure_type = "transport_failure"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        errcode: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.errcode = errcode


class HomeserverDiscoveryError(TransportError):
    """Server name or URL does not lead to a Matrix homeserver."""

    exit_code = 25
    failure_type = "homeserver_discovery_failure"


class PersistenceError(LoginFailure):
    """Session could not be serialized, written or read back."""

    exit_code = 23
    failure_type = "persistence_failure"


class ConfigurationError(LoginFailure):
    """Configuration file is invalid.

    Raised when:
    - Config file contains invalid JSON
    - Config file fails Pydantic validation
    """

    exit_code = 24
    failure_type = "configuration_failure"


class NotAuthenticatedError(AssertionError):
    """A user session was requested from a connection that never logged in.

    This is an internal invariant violation, not user input: persistence
    only runs after an authenticator returned successfully.
    """
