"""
In-memory conversation sessions, one per user.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class Session:
    """Where a user is inside a flow and what they've answered so far."""

    flow: str
    date: str
    step: int = 0
    answers: dict = field(default_factory=dict)


class SessionStore:
    """Holds at most one active session per user id."""

    def __init__(self):
        self._sessions: Dict[int, Session] = {}

    def get(self, user_id: int) -> Optional[Session]:
        return self._sessions.get(user_id)

    def start(self, user_id: int, session: Session) -> Session:
        # Replaces whatever flow the user was in
        self._sessions[user_id] = session
        return session

    def discard(self, user_id: int) -> Optional[Session]:
        return self._sessions.pop(user_id, None)

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
