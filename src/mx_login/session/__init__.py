"""Session records and their persistence.

- ClientSession, UserSession, PersistedSession: serializable session models
- build_persisted_session / save_session / load_session: session file I/O
"""

from mx_login.session.models import ClientSession, PersistedSession, UserSession
from mx_login.session.persistence import (
    build_persisted_session,
    delete_session,
    load_session,
    save_session,
)

__all__ = [
    # Models
    "ClientSession",
    "PersistedSession",
    "UserSession",
    # Persistence
    "build_persisted_session",
    "delete_session",
    "load_session",
    "save_session",
]
