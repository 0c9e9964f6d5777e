"""
In-memory store for pending logins (state -> nonce) between GET and POST /facebook/login.

Entries are single-use: take_if_valid removes the entry whether it is valid or expired, so a
consumed state can never be replayed. Expiry is checked on read; abandoned entries are swept
when the store reaches capacity.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

from social_login.clock import Clock, SystemClock
from social_login.errors import DuplicateKey, EntryExpired, EntryNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingLogin:
    state: str
    nonce: str
    expires_at: datetime

    def expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class ExpiringStateStore:
    def __init__(self, clock: Clock | None = None, max_entries: int = 10000):
        self._clock = clock or SystemClock()
        self._max_entries = max_entries
        self._pending: dict[str, PendingLogin] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, state: str) -> bool:
        return state in self._pending

    def put(self, state: str, nonce: str, ttl: timedelta) -> PendingLogin:
        """Store a pending login expiring at now + ttl. Raises DuplicateKey if state is taken."""
        with self._lock:
            if state in self._pending:
                raise DuplicateKey("state already pending")
            if self._max_entries > 0 and len(self._pending) >= self._max_entries:
                self._purge_expired_locked()
            entry = PendingLogin(state=state, nonce=nonce, expires_at=self._clock.now() + ttl)
            self._pending[state] = entry
            return entry

    def take_if_valid(self, state: str) -> str:
        """
        Remove the entry for state and return its nonce.
        Raises EntryNotFound if absent, EntryExpired if past expires_at (entry still removed).
        """
        with self._lock:
            entry = self._pending.pop(state, None)
        if entry is None:
            raise EntryNotFound("unknown state")
        if entry.expired(self._clock.now()):
            raise EntryExpired("state expired")
        return entry.nonce

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        with self._lock:
            return self._purge_expired_locked()

    def _purge_expired_locked(self) -> int:
        now = self._clock.now()
        expired = [s for s, e in self._pending.items() if e.expired(now)]
        for s in expired:
            del self._pending[s]
        if expired:
            logger.debug("Purged %d expired pending logins", len(expired))
        return len(expired)
