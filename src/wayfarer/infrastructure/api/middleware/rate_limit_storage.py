"""In-memory storage for rate limiting counters.

This module provides a thread-safe fixed-window counter keyed by client
address. It is process-local: each worker enforces its own limit.
"""

import time
from dataclasses import dataclass
from threading import Lock


@dataclass
class RateWindow:
    """Request count for one key within the current window."""

    started_at: float
    count: int


class RateLimitStorage:
    """Thread-safe in-memory storage for fixed-window rate limit counters."""

    def __init__(self, window_seconds: int = 60, cleanup_interval: int = 3600):
        """Initialize storage.

        Args:
            window_seconds: Length of a counting window.
            cleanup_interval: Interval in seconds to clean up stale entries.
        """
        self._storage: dict[str, RateWindow] = {}
        self._lock = Lock()
        self._window_seconds = window_seconds
        self._last_cleanup = time.monotonic()
        self._cleanup_interval = cleanup_interval

    def consume(self, key: str, limit: int) -> tuple[bool, int, int]:
        """Count one request for the given key.

        Args:
            key: The unique key, usually the client address.
            limit: Allowed requests per window.

        Returns:
            A tuple of (is_allowed, remaining_requests, seconds_until_reset).
        """
        now = time.monotonic()

        with self._lock:
            if now - self._last_cleanup > self._cleanup_interval:
                self._cleanup_stale(now)

            window = self._storage.get(key)
            if window is None or now - window.started_at >= self._window_seconds:
                window = RateWindow(started_at=now, count=0)
                self._storage[key] = window

            reset_seconds = max(1, int(window.started_at + self._window_seconds - now))
            if window.count >= limit:
                return False, 0, reset_seconds

            window.count += 1
            return True, limit - window.count, reset_seconds

    def reset(self) -> None:
        """Forget every counter."""
        with self._lock:
            self._storage.clear()

    def _cleanup_stale(self, now: float) -> None:
        """Remove windows that have already ended."""
        stale = [
            key
            for key, window in self._storage.items()
            if now - window.started_at >= self._window_seconds
        ]
        for key in stale:
            del self._storage[key]
        self._last_cleanup = now


# Login endpoint counters
login_rate_limit_storage = RateLimitStorage()
