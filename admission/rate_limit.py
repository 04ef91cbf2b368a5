"""Thread-safe in-memory per-client request throttle."""
from __future__ import annotations

from collections import deque
from threading import Lock
from typing import Callable, Deque, Dict, Optional

from admission.utils import MonotonicClock


class RateLimiter:
    """Tracks requests per client IP within a sliding window."""

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Optional[Callable[[], float]] = None,
        cleanup_interval_seconds: float = 300.0,
    ) -> None:
        self.limit = limit
        self.window = window_seconds
        self._clock = clock or MonotonicClock()
        self._requests: Dict[str, Deque[float]] = {}
        self._lock = Lock()
        self._cleanup_interval = cleanup_interval_seconds
        self._last_cleanup = self._clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._requests)

    def _cleanup_expired_entries(self, now: float) -> None:
        """Drop clients whose newest request has left the window.

        Should be called while holding self._lock.
        """
        cutoff = now - self.window
        expired = [ip for ip, q in self._requests.items() if not q or q[-1] <= cutoff]
        for ip in expired:
            del self._requests[ip]

    def allow(self, client_ip: str) -> bool:
        now = self._clock()
        with self._lock:
            if now - self._last_cleanup >= self._cleanup_interval:
                self._cleanup_expired_entries(now)
                self._last_cleanup = now

            q = self._requests.get(client_ip)
            if q is not None:
                while q and q[0] <= now - self.window:
                    q.popleft()
                if len(q) >= self.limit:
                    return False
            else:
                q = self._requests[client_ip] = deque()
            q.append(now)
            return True

    def retry_after(self, client_ip: str) -> float:
        """Seconds until ``client_ip`` gets a free slot again."""

        now = self._clock()
        with self._lock:
            q = self._requests.get(client_ip)
            if not q or len(q) < self.limit:
                return 0.0
            return max(0.0, q[0] + self.window - now)
