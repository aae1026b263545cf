from __future__ import annotations

import time
from collections import Counter, deque
from dataclasses import asdict
from threading import Lock
from typing import Deque, Dict, List, Tuple

from .models import CrawlSummary, CrawlTask


class MetricsCollector:
    """Thread-safe collector for crawl statistics.

    Records the start time of every outbound fetch and the outcome of every
    finished CrawlTask, and aggregates them into a CrawlSummary."""

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._lock = Lock()
        self._starts: List[float] = []
        self._events: Deque[Tuple[float, CrawlTask]] = deque()

    def record_fetch_start(self) -> float:
        ts = self._clock()
        with self._lock:
            self._starts.append(ts)
        return ts

    def record_task(self, task: CrawlTask) -> None:
        with self._lock:
            self._events.append((self._clock(), task))

    def fetch_starts(self) -> List[float]:
        with self._lock:
            return list(self._starts)

    def failures(self) -> List[Tuple[str, str]]:
        with self._lock:
            return [(t.url.value, t.error or "") for _, t in self._events if not t.ok]

    def summary(self) -> CrawlSummary:
        with self._lock:
            tasks = [t for _, t in self._events]
        total = len(tasks)
        succeeded = sum(1 for t in tasks if t.ok)
        by_kind = Counter(t.error_kind or "unknown" for t in tasks if not t.ok)
        avg_latency_ms = (sum(t.latency_ms for t in tasks) / total) if total else 0.0
        return CrawlSummary(
            total=total,
            succeeded=succeeded,
            failed=total - succeeded,
            failures_by_kind=dict(by_kind),
            avg_latency_ms=avg_latency_ms,
        )

    def export_json(self) -> List[Dict]:
        """Export all recorded tasks as a list of dictionaries."""
        with self._lock:
            return [{"timestamp": ts, **asdict(t)} for ts, t in self._events]
