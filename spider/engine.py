from __future__ import annotations

import concurrent.futures
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import List, Optional, Tuple

from .backoff import RetryPolicy
from .base import PageFetcher
from .errors import ExtractionError, FetchError
from .events import EventSink, NullEventSink
from .extractor import LinkExtractor
from .fetchers import create_fetcher
from .frontier import Frontier
from .metrics import MetricsCollector
from .models import CrawlConfig, CrawlResult, CrawlTask, Url
from .rate_limiter import RateLimiter
from .scope import in_scope
from .storage import StorageBase


class EngineState(str, Enum):
    SEEDING = "seeding"
    RUNNING = "running"
    DRAINING = "draining"
    DONE = "done"


class CrawlEngine:
    """Runs a bounded pool of crawl workers over a shared Frontier.

    Each worker loops: claim a URL, wait for admission, fetch, extract,
    filter by scope and depth, offer new links, record emails. A worker
    counts itself busy before it claims, so an empty frontier seen while no
    worker is busy means no further offer can happen. The run ends when a
    worker sees two consecutive empty claims at the same frontier generation
    with no worker busy.
    """

    def __init__(
        self,
        config: CrawlConfig,
        fetcher: Optional[PageFetcher] = None,
        rate_limiter: Optional[RateLimiter] = None,
        extractor: Optional[LinkExtractor] = None,
        events: Optional[EventSink] = None,
        metrics: Optional[MetricsCollector] = None,
        storage: Optional[StorageBase] = None,
        retry: Optional[RetryPolicy] = None,
        idle_poll_secs: float = 0.05,
    ) -> None:
        self._config = config
        self._fetcher = fetcher or create_fetcher(config)
        self._rate_limiter = rate_limiter or RateLimiter(qps=config.requests_per_second)
        self._extractor = extractor or LinkExtractor()
        self._events = events or NullEventSink()
        self._metrics = metrics or MetricsCollector()
        self._storage = storage
        self._retry = retry or RetryPolicy(max_retries=config.max_retries)
        self._idle_poll = idle_poll_secs

        self._frontier = Frontier(max_urls=config.max_pages)
        self._cv = threading.Condition()
        self._busy = 0
        self._quiescent = False
        self._state = EngineState.SEEDING
        self._cancelled = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._futures: List[Future] = []

    @property
    def state(self) -> EngineState:
        with self._cv:
            return self._state

    @property
    def frontier(self) -> Frontier:
        return self._frontier

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    def start(self) -> None:
        """Seed the frontier and launch the worker pool. Returns immediately."""
        with self._cv:
            if self._state is not EngineState.SEEDING:
                raise RuntimeError(f"engine already started (state={self._state.value})")
        self._frontier.offer(self._config.seed)
        self._set_state(EngineState.RUNNING)

        workers = self._config.workers
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="spider-worker")
        self._futures = [self._executor.submit(self._worker_loop) for _ in range(workers)]

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for all workers to exit. True once the run is Done."""
        if self._executor is None:
            raise RuntimeError("engine not started")
        _, not_done = concurrent.futures.wait(self._futures, timeout=timeout)
        if not_done:
            return False
        self._executor.shutdown(wait=True)
        for fut in self._futures:
            # worker loops only return; anything raised here is a bug
            fut.result()
        if self.state is not EngineState.DONE:
            self._set_state(EngineState.DONE)
        return True

    def run(self) -> CrawlResult:
        self.start()
        self.wait()
        return self.result()

    def cancel(self) -> None:
        """Stop admitting new work. In-flight fetches are allowed to finish."""
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        self._frontier.close()
        self._events.emit("cancelled", visited=len(self._frontier.visited()))
        with self._cv:
            self._cv.notify_all()

    def result(self) -> CrawlResult:
        summary = self._metrics.summary()
        return CrawlResult(
            visited=tuple(self._frontier.visited()),
            emails=tuple(self._frontier.emails()),
            succeeded=summary.succeeded,
            failed=summary.failed,
            failures=tuple(self._metrics.failures()),
            state=self.state.value,
        )

    def _set_state(self, state: EngineState) -> None:
        with self._cv:
            if self._state is state:
                return
            self._state = state
        self._events.emit("state", state=state.value)

    def _worker_loop(self) -> None:
        empty_seen_at: Optional[int] = None
        while not self._cancelled.is_set():
            with self._cv:
                if self._quiescent:
                    return
                self._busy += 1

            url = self._frontier.try_claim_next()
            if url is None:
                if self._on_empty_claim(empty_seen_at):
                    return
                empty_seen_at = self._frontier.generation
                continue

            empty_seen_at = None
            if self.state is EngineState.DRAINING:
                self._set_state(EngineState.RUNNING)
            try:
                self._process(url)
            except Exception as exc:  # noqa: BLE001
                self._record_failure(url, "internal", f"{type(exc).__name__}: {exc}")
            finally:
                with self._cv:
                    self._busy -= 1
                    self._cv.notify_all()

    def _on_empty_claim(self, empty_seen_at: Optional[int]) -> bool:
        """Release the busy slot after an empty claim. True when the crawl is quiescent."""
        announce = False
        with self._cv:
            self._busy -= 1
            if self._quiescent:
                return True
            generation = self._frontier.generation
            if (
                self._busy == 0
                and empty_seen_at == generation
                and self._frontier.is_drained()
            ):
                self._quiescent = True
                announce = True
                self._cv.notify_all()
            elif self._busy > 0:
                self._cv.wait(timeout=self._idle_poll)
        if announce:
            self._events.emit(
                "quiescent",
                visited=len(self._frontier.visited()),
                emails=len(self._frontier.emails()),
            )
            return True
        self._set_state(EngineState.DRAINING)
        return False

    def _process(self, url: Url) -> None:
        start = time.monotonic()
        try:
            body, attempts = self._fetch_with_retry(url)
        except FetchError as exc:
            self._metrics.record_task(CrawlTask(
                url=url,
                ok=False,
                status_code=exc.status,
                error=exc.reason,
                error_kind=exc.kind.value,
                latency_ms=_elapsed_ms(start),
            ))
            self._events.emit("fetch_failed", url=url.value, reason=exc.reason)
            return

        if body is None:
            # cancelled while waiting for admission
            self._metrics.record_task(CrawlTask(url=url, ok=False, error="cancelled", error_kind="cancelled"))
            return

        if self._storage is not None:
            self._storage.write(url, body)

        try:
            links, emails = self._extractor.extract(body, url)
        except ExtractionError as exc:
            self._events.emit("extraction_failed", url=url.value, reason=str(exc))
            links, emails = [], []

        accepted = self._enqueue_links(url, links)
        for addr in emails:
            if self._frontier.record_email(addr):
                self._events.emit("email_found", email=addr, url=url.value)

        self._metrics.record_task(CrawlTask(
            url=url,
            ok=True,
            links=tuple(accepted),
            emails=tuple(emails),
            latency_ms=_elapsed_ms(start),
            attempts=attempts,
        ))

    def _record_failure(self, url: Url, kind: str, reason: str) -> None:
        self._metrics.record_task(CrawlTask(url=url, ok=False, error=reason, error_kind=kind))
        self._events.emit("task_failed", url=url.value, kind=kind, reason=reason)

    def _fetch_with_retry(self, url: Url) -> Tuple[Optional[str], int]:
        attempt = 0
        while True:
            attempt += 1
            if not self._rate_limiter.acquire(self._cancelled):
                return None, attempt
            self._metrics.record_fetch_start()
            try:
                return self._fetcher.fetch(url.value), attempt
            except FetchError as exc:
                if self._cancelled.is_set() or not self._retry.should_retry(attempt, exc):
                    raise
                sleep_s = self._retry.get_sleep(attempt)
                self._events.emit("fetch_retry", url=url.value, attempt=attempt, sleep=round(sleep_s, 3))
                if self._cancelled.wait(sleep_s):
                    raise

    def _enqueue_links(self, page: Url, links: List[Url]) -> List[Url]:
        accepted: List[Url] = []
        max_depth = self._config.max_depth
        for link in links:
            if max_depth is not None and link.depth > max_depth:
                continue
            if not in_scope(link, self._config.seed, self._config.include_external):
                continue
            if self._frontier.offer(link):
                accepted.append(link)
                self._events.emit("link_found", url=link.value, depth=link.depth, source=page.value)
        return accepted


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
