from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable

from image_converter.logger import get_logger

_logger = get_logger("rate_limiter")


class SlidingWindowRateLimiter:
    """Caps admissions to `max_admissions` per sliding `window_seconds`.

    State is a time-ordered log of admission timestamps. Expired entries are
    pruned from the front on every check; there is no background timer.
    `reserve()` is atomic with respect to other reserves on the same instance.
    """

    def __init__(
        self,
        max_admissions: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_admissions <= 0:
            raise ValueError("max_admissions must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_admissions = int(max_admissions)
        self.window_seconds = float(window_seconds)
        self._clock = clock
        self._log: deque[float] = deque()
        self._lock = threading.Lock()

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else float(now)

    def _prune(self, now: float) -> None:
        cutoff = now - self.window_seconds
        while self._log and self._log[0] < cutoff:
            self._log.popleft()

    def has_capacity(self, now: float | None = None) -> bool:
        with self._lock:
            self._prune(self._now(now))
            return len(self._log) < self.max_admissions

    def reserve(self, now: float | None = None) -> bool:
        with self._lock:
            ts = self._now(now)
            self._prune(ts)
            if len(self._log) >= self.max_admissions:
                _logger.debug("reserve denied: %d/%d in window", len(self._log), self.max_admissions)
                return False
            self._log.append(ts)
            return True

    def remaining(self, now: float | None = None) -> int:
        with self._lock:
            self._prune(self._now(now))
            return self.max_admissions - len(self._log)

    def reset(self) -> None:
        with self._lock:
            self._log.clear()
