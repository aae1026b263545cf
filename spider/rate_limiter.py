from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from .errors import ConfigError


class RateLimiter:
    """Thread-safe token-bucket admission control based on requests per second.

    Capacity and refill rate both equal the configured rate. The bucket
    starts with a single token so a saturated crawl never bursts past the
    rate in its first second. admit() never blocks; acquire() sleeps
    outside the lock until a token is granted."""

    def __init__(self, qps: float, clock: Callable[[], float] = time.monotonic) -> None:
        if not qps or qps <= 0:
            raise ConfigError(f"rate must be positive, got {qps}")
        self._rate = float(qps)
        self._capacity = float(qps)
        self._clock = clock
        self._lock = threading.Lock()
        self._tokens = min(1.0, self._capacity)
        self._last_refill = clock()

    @property
    def rate(self) -> float:
        return self._rate

    def admit(self) -> float:
        """Take a token if one is available; otherwise return seconds to wait."""
        with self._lock:
            now = self._clock()
            elapsed = max(0.0, now - self._last_refill)
            self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
            self._last_refill = now
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return 0.0
            return (1.0 - self._tokens) / self._rate

    def acquire(self, cancelled: Optional[threading.Event] = None) -> bool:
        """Block until a request is admitted.

        Returns False if ``cancelled`` is set while waiting."""
        while True:
            wait = self.admit()
            if wait <= 0:
                return True
            if cancelled is not None:
                if cancelled.wait(wait):
                    return False
            else:
                time.sleep(wait)
