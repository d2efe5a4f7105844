"""
Session state for signed-in users.

There is no global "current user": each client holds an opaque session id,
and the registry maps it to a ``SessionContext`` with an explicit
login/logout lifecycle.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from typing import Optional

from shared.types import User, UserRole


@dataclass
class SessionContext:
    session_id: str
    current_user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    @property
    def role(self) -> Optional[UserRole]:
        return self.current_user.role if self.current_user else None

    def login(self, user: User) -> None:
        self.current_user = user

    def logout(self) -> None:
        self.current_user = None


class SessionRegistry:
    """In-process map of session ids to contexts."""

    def __init__(self):
        self._sessions: dict[str, SessionContext] = {}
        self._lock = threading.Lock()

    def open(self, user: User) -> SessionContext:
        context = SessionContext(session_id=uuid.uuid4().hex)
        context.login(user)
        with self._lock:
            self._sessions[context.session_id] = context
        return context

    def get(self, session_id: Optional[str]) -> Optional[SessionContext]:
        if not session_id:
            return None
        with self._lock:
            context = self._sessions.get(session_id)
        if context is None or not context.is_authenticated:
            return None
        return context

    def close(self, session_id: str) -> None:
        with self._lock:
            context = self._sessions.pop(session_id, None)
        if context is not None:
            context.logout()

    def reset(self) -> None:
        """Drop every session (useful in tests)."""
        with self._lock:
            self._sessions.clear()
