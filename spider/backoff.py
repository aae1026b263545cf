from __future__ import annotations

import random

from .errors import FetchError, FetchErrorKind


class RetryPolicy:
    """Engine-side retry decisions for failed fetches.

    Only network failures are retried, at most ``max_retries`` times.
    Sleep duration is base * 2^(attempt-1) plus random jitter, capped at a
    configurable maximum."""

    def __init__(self, max_retries: int = 0, base_seconds: float = 0.5, max_seconds: float = 10.0) -> None:
        self._max_retries = max(0, max_retries)
        self._base = base_seconds
        self._max = max_seconds

    def should_retry(self, attempt: int, error: FetchError) -> bool:
        """True if the ``attempt``-th failed try should be followed by another."""
        return error.kind is FetchErrorKind.NETWORK and attempt <= self._max_retries

    def get_sleep(self, attempt: int) -> float:
        exp = min(self._max, self._base * (2 ** max(attempt - 1, 0)))
        jitter = random.uniform(0, exp * 0.1)
        return exp + jitter
