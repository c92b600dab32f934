from __future__ import annotations

import time
from collections import deque
from typing import Callable, Deque


class SlidingWindowRateLimiter:
    """
    Limits dispatches to ``max_requests`` per trailing window (one minute by default).

    Checking and recording happen in one call so a permitted request always
    occupies a slot.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1.")
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock
        self._timestamps: Deque[float] = deque()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def try_acquire(self) -> bool:
        now = self._clock()
        self._prune(now)
        if len(self._timestamps) >= self._max_requests:
            return False
        self._timestamps.append(now)
        return True

    def remaining(self) -> int:
        self._prune(self._clock())
        return self._max_requests - len(self._timestamps)

    def retry_after(self) -> float:
        """Seconds until the oldest recorded request leaves the window."""
        now = self._clock()
        self._prune(now)
        if len(self._timestamps) < self._max_requests:
            return 0.0
        return max(0.0, self._timestamps[0] + self._window - now)

    def reset(self) -> None:
        self._timestamps.clear()

    def stats(self) -> dict[str, float | int]:
        return {
            "requests_in_window": self._max_requests - self.remaining(),
            "max_requests": self._max_requests,
            "window_seconds": self._window,
        }

    def _prune(self, now: float) -> None:
        cutoff = now - self._window
        while self._timestamps and self._timestamps[0] <= cutoff:
            self._timestamps.popleft()
