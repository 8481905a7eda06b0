"""In-memory limiter for failed login attempts."""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict, deque

from ..config import settings


class LoginAttemptLimiter:
    """Blocks a key for a while after too many failures inside a sliding window."""

    def __init__(self) -> None:
        self._failures: dict[str, deque[float]] = defaultdict(deque)
        self._blocked_until: dict[str, float] = {}
        self._lock = asyncio.Lock()

    def _prune(self, key: str, now: float) -> None:
        """Drop expired failures for `key`, and the key itself once empty. Caller holds the lock."""
        failures = self._failures.get(key)
        if failures is None:
            return
        cutoff = now - max(1, settings.auth_rate_limit_window_seconds)
        while failures and failures[0] <= cutoff:
            failures.popleft()
        if not failures:
            del self._failures[key]

    def _sweep(self, now: float) -> None:
        for key in list(self._failures):
            self._prune(key, now)
        for key, blocked_until in list(self._blocked_until.items()):
            if blocked_until <= now:
                del self._blocked_until[key]

    async def retry_after(self, key: str) -> int:
        """Seconds until `key` may try again, 0 when not blocked."""
        now = time.monotonic()
        async with self._lock:
            self._prune(key, now)
            blocked_until = self._blocked_until.get(key)
            if blocked_until and now < blocked_until:
                return max(1, int(blocked_until - now))
            self._blocked_until.pop(key, None)
            return 0

    async def add_failure(self, key: str) -> bool:
        """Record a failure. Returns True when the key just became blocked."""
        limit = settings.auth_rate_limit_max_attempts
        if limit <= 0:
            return False

        now = time.monotonic()
        async with self._lock:
            # Keys that never come back would otherwise accumulate.
            self._sweep(now)
            failures = self._failures[key]
            failures.append(now)
            if len(failures) >= limit:
                del self._failures[key]
                self._blocked_until[key] = now + max(1, settings.auth_rate_limit_block_seconds)
                return True
            return False

    async def clear(self, key: str) -> None:
        async with self._lock:
            self._failures.pop(key, None)
            self._blocked_until.pop(key, None)

    def tracked_keys(self) -> set[str]:
        return set(self._failures) | set(self._blocked_until)

    def reset(self) -> None:
        self._failures.clear()
        self._blocked_until.clear()


login_limiter = LoginAttemptLimiter()
