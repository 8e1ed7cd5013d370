"""
Chat session store for multi-turn image generation.

Sessions keep a story's illustrations visually consistent by sending each
page's prompt into the same model conversation. Expiry is checked on every
access instead of by a background timer, so a store can live in the worker
context and be injected wherever it is needed.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

DEFAULT_SESSION_TTL = timedelta(minutes=30)


def is_session_expired(
    last_used_at: datetime,
    now: datetime,
    ttl: timedelta = DEFAULT_SESSION_TTL,
) -> bool:
    """True if a session last used at `last_used_at` has expired by `now`."""
    return now - last_used_at >= ttl


@dataclass
class ChatSession:
    """Handle to a provider conversation."""

    session_id: str
    chat: Any
    created_at: datetime
    last_used_at: datetime
    turns: int = 0


@dataclass
class ChatSessionStore:
    """In-memory sessions keyed by id (typically the story id).

    Args:
        chat_factory: Creates a new provider conversation object
        ttl: Idle time after which a session is discarded
        clock: Returns the current time (injectable for tests)
    """

    chat_factory: Callable[[], Any]
    ttl: timedelta = DEFAULT_SESSION_TTL
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(timezone.utc))
    _sessions: dict[str, ChatSession] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def get_or_create(self, session_id: str, now: Optional[datetime] = None) -> ChatSession:
        """Return a live session for `session_id`, creating one if missing or expired."""
        now = now or self.clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None and is_session_expired(session.last_used_at, now, self.ttl):
                del self._sessions[session_id]
                session = None

            if session is None:
                session = ChatSession(
                    session_id=session_id,
                    chat=self.chat_factory(),
                    created_at=now,
                    last_used_at=now,
                )
                self._sessions[session_id] = session
            else:
                session.last_used_at = now

            return session

    def delete(self, session_id: str) -> bool:
        """Drop a session. Returns False if it did not exist."""
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """Remove every expired session and return how many were removed."""
        now = now or self.clock()
        with self._lock:
            expired = [
                session_id
                for session_id, session in self._sessions.items()
                if is_session_expired(session.last_used_at, now, self.ttl)
            ]
            for session_id in expired:
                del self._sessions[session_id]
            return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions
