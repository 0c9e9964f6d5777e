"""
Rate limiting for the login endpoints. In-memory sliding window per key (client IP).
Bounds how fast one client can create pending logins or try id_tokens.
"""
import math
import threading
import time
from collections.abc import Callable


class RateLimiter:
    def __init__(
        self,
        limit: int,
        window_seconds: int = 60,
        timer: Callable[[], float] = time.monotonic,
        max_keys: int = 10000,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._timer = timer
        self._max_keys = max_keys
        self._hits: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def check_and_consume(self, key: str) -> tuple[bool, int | None]:
        """
        Record a request for key if it is under the limit for the window.
        Returns (allowed, retry_after_seconds); retry_after is >= 1 when not allowed.
        """
        if self.limit <= 0:
            return True, None
        now = self._timer()
        cutoff = now - self.window_seconds
        with self._lock:
            timestamps = [t for t in self._hits.get(key, []) if t > cutoff]
            if len(timestamps) >= self.limit:
                self._hits[key] = timestamps
                retry_after = max(1, math.ceil(self.window_seconds - (now - min(timestamps))))
                return False, retry_after
            if key not in self._hits and len(self._hits) >= self._max_keys:
                self._purge_stale_locked(cutoff)
            timestamps.append(now)
            self._hits[key] = timestamps
            return True, None

    def _purge_stale_locked(self, cutoff: float) -> None:
        stale = [k for k, ts in self._hits.items() if not ts or ts[-1] <= cutoff]
        for k in stale:
            del self._hits[k]
