"""
In-memory store for opaque session tokens issued after a successful login.
Reads are repeatable; an expired session is deleted the first time it is read.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

from social_login.clock import Clock, SystemClock
from social_login.errors import DuplicateKey, EntryExpired, EntryNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredSession:
    token: str
    user_id: str
    expires_at: datetime

    def expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class SessionStore:
    def __init__(self, clock: Clock | None = None, max_entries: int = 100000):
        self._clock = clock or SystemClock()
        self._max_entries = max_entries
        self._sessions: dict[str, StoredSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def put(self, token: str, user_id: str, ttl: timedelta) -> StoredSession:
        with self._lock:
            if token in self._sessions:
                raise DuplicateKey("session token already in use")
            if self._max_entries > 0 and len(self._sessions) >= self._max_entries:
                self._purge_expired_locked()
            session = StoredSession(token=token, user_id=user_id, expires_at=self._clock.now() + ttl)
            self._sessions[token] = session
            return session

    def get(self, token: str) -> StoredSession:
        """
        Return the session for token.
        Raises EntryNotFound if unknown; EntryExpired if past expires_at (the session is deleted).
        """
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                raise EntryNotFound("unknown session")
            if session.expired(self._clock.now()):
                del self._sessions[token]
                raise EntryExpired("session expired")
            return session

    def revoke(self, token: str) -> None:
        """Delete the session if present. No error for unknown tokens."""
        with self._lock:
            self._sessions.pop(token, None)

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_expired_locked()

    def _purge_expired_locked(self) -> int:
        now = self._clock.now()
        expired = [t for t, s in self._sessions.items() if s.expired(now)]
        for t in expired:
            del self._sessions[t]
        if expired:
            logger.debug("Purged %d expired sessions", len(expired))
        return len(expired)
