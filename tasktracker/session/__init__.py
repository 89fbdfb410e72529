"""模块说明：__init__。"""

from tasktracker.session.manager import (
    QRTimeoutError,
    ReconnectError,
    Session,
    SessionError,
    SessionManager,
    SessionState,
)
from tasktracker.session.store import SessionStore, SessionStoreError

__all__ = [
    "Session",
    "SessionState",
    "SessionManager",
    "SessionStore",
    "SessionError",
    "SessionStoreError",
    "QRTimeoutError",
    "ReconnectError",
]
