"""Session data models.

Three records cross the login flow:
- ClientSession: how to rebuild the local client (homeserver, store location)
- UserSession: what the homeserver issued on login (user, device, tokens)
- PersistedSession: both of the above plus the sync token, written to disk

The login flow never looks inside ClientSession or UserSession; it only
carries them from the code that produced them to the session file.
"""

from __future__ import annotations

__all__ = [
    "ClientSession",
    "PersistedSession",
    "UserSession",
]

from pydantic import BaseModel, Field


class ClientSession(BaseModel):
    """Data needed to rebuild the client for a stored session.

    Attributes:
        homeserver: Homeserver base URL.
        db_path: Local store directory for this session.
        passphrase: Passphrase protecting the local store.
    """

    homeserver: str = Field(min_length=1)
    db_path: str = Field(min_length=1)
    passphrase: str

    model_config = {"frozen": True, "extra": "ignore"}


class UserSession(BaseModel):
    """Session issued by the homeserver after a successful login.

    Attributes:
        user_id: Fully-qualified Matrix user id (e.g. "@alice:example.org").
        device_id: Device created (or reused) by the login.
        access_token: Access token for the client-server API.
        refresh_token: Refresh token, if the server issued one.
    """

    user_id: str = Field(min_length=1)
    device_id: str = Field(min_length=1)
    access_token: str = Field(min_length=1)
    refresh_token: str | None = None

    model_config = {"frozen": True, "extra": "ignore"}


class PersistedSession(BaseModel):
    """Everything needed to resume without logging in again.

    Attributes:
        client_session: Descriptor produced when the client was built.
        user_session: Session issued by the homeserver.
        sync_token: Last sync batch token; absent until the first sync.
    """

    client_session: ClientSession
    user_session: UserSession
    sync_token: str | None = None

    model_config = {"extra": "ignore"}  # Ignore unknown fields for forward compat

    def to_json(self) -> str:
        """Serialize to JSON string for storage."""
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, data: str) -> "PersistedSession":
        """Deserialize from JSON string."""
        return cls.model_validate_json(data)
