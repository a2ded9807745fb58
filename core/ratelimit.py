"""Rate limiter -- sliding-window request limits keyed by client identity.

Each key keeps the timestamps of its recent requests. A request is allowed
while fewer than `requests` timestamps fall inside the trailing `window`.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one limit() call.

    `reset` is a unix timestamp in milliseconds: when the oldest counted
    request leaves the window and a slot frees up.
    """

    success: bool
    limit: int
    remaining: int
    reset: int

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }


class SlidingWindowRateLimiter:
    """Allow `requests` calls per `window` seconds for each key."""

    def __init__(
        self,
        requests: int = 10,
        window: float = 10.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if requests < 1:
            raise ValueError("requests must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")
        self.requests = requests
        self.window = window
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def limit(self, key: str) -> RateLimitDecision:
        """Count a request for `key` if the window has room."""
        with self._lock:
            now = self._clock()
            if now - self._last_sweep >= self.window:
                self._sweep(now)
            hits = self._hits.setdefault(key, deque())
            self._evict(hits, now)

            success = len(hits) < self.requests
            if success:
                hits.append(now)
            else:
                logger.warning("Rate limit exceeded for %s", key)

            oldest = hits[0] if hits else now
            return RateLimitDecision(
                success=success,
                limit=self.requests,
                remaining=max(self.requests - len(hits), 0),
                reset=int((oldest + self.window) * 1000),
            )

    def reset(self, key: str | None = None) -> None:
        """Forget the history of one key, or of every key."""
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)

    def _sweep(self, now: float) -> None:
        """Drop keys whose requests have all left the window."""
        for key in [k for k, hits in self._hits.items() if not hits or hits[-1] <= now - self.window]:
            del self._hits[key]
        self._last_sweep = now

    def _evict(self, hits: deque[float], now: float) -> None:
        cutoff = now - self.window
        while hits and hits[0] <= cutoff:
            hits.popleft()
