from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Dict, List, Optional

from .models import EmailAddress, Url


class Frontier:
    """Shared, deduplicated store of pending and visited URLs plus found emails.

    Every operation runs under a single lock, so a claim is a pop from
    ``pending`` and an insert into ``visited`` in one step. A URL is in at
    most one of the two sets and is handed out by try_claim_next() at most
    once."""

    def __init__(self, max_urls: Optional[int] = None) -> None:
        self._lock = threading.Lock()
        self._queue: Deque[Url] = deque()
        self._pending: Dict[str, Url] = {}
        self._visited: Dict[str, Url] = {}
        self._emails: Dict[EmailAddress, None] = {}
        self._max_urls = max_urls
        self._generation = 0
        self._closed = False

    def try_claim_next(self) -> Optional[Url]:
        """Pop one pending URL, mark it visited and return it; None if empty."""
        with self._lock:
            if not self._queue:
                return None
            url = self._queue.popleft()
            del self._pending[url.value]
            self._visited[url.value] = url
            return url

    def offer(self, url: Url) -> bool:
        """Queue ``url`` unless it is already pending or visited.

        Returns True only when the URL was newly queued."""
        with self._lock:
            if self._closed:
                return False
            if url.value in self._pending or url.value in self._visited:
                return False
            if self._max_urls is not None and len(self._pending) + len(self._visited) >= self._max_urls:
                return False
            self._pending[url.value] = url
            self._queue.append(url)
            self._generation += 1
            return True

    def record_email(self, addr: EmailAddress) -> bool:
        with self._lock:
            if addr in self._emails:
                return False
            self._emails[addr] = None
            return True

    def is_drained(self) -> bool:
        with self._lock:
            return not self._queue

    def close(self) -> None:
        """Refuse every further offer. Pending URLs stay claimable."""
        with self._lock:
            self._closed = True

    @property
    def generation(self) -> int:
        """Number of offers accepted so far."""
        with self._lock:
            return self._generation

    def visited(self) -> List[str]:
        with self._lock:
            return list(self._visited)

    def pending(self) -> List[str]:
        with self._lock:
            return [url.value for url in self._queue]

    def emails(self) -> List[EmailAddress]:
        with self._lock:
            return list(self._emails)
