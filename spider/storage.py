from __future__ import annotations

import os
import queue
import re
import threading
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Tuple
from urllib.parse import unquote, urlsplit

from .models import Url

_UNSAFE = re.compile(r"[^A-Za-z0-9._\-]")


class StorageBase(ABC):
    """Abstract base class for page storage backends."""

    @abstractmethod
    def write(self, url: Url, body: str) -> None:
        """Persist the body of one fetched page."""

    @abstractmethod
    def close(self) -> None:
        """Flush pending writes and release resources."""


class PageStorage(StorageBase):
    """Saves fetched pages under ``root/<host>/<path>`` using a background writer thread."""

    def __init__(self, root: str) -> None:
        self._root = root
        self._queue: "queue.Queue[Optional[Tuple[Url, str]]]" = queue.Queue()
        self._thread = threading.Thread(target=self._writer, daemon=True)
        self._thread.start()

    def write(self, url: Url, body: str) -> None:
        """Enqueue a page for background writing."""
        self._queue.put((url, body))

    def close(self) -> None:
        """Signal the writer thread to flush and stop."""
        self._queue.put(None)
        self._thread.join(timeout=5)

    def path_for(self, url: Url) -> str:
        parts = urlsplit(url.value)
        segments = [_UNSAFE.sub("_", unquote(s)) for s in parts.path.split("/") if s not in ("", ".", "..")]
        if not segments or parts.path.endswith("/"):
            segments.append("index.html")
        if parts.query:
            segments[-1] += "_" + _UNSAFE.sub("_", parts.query)
        return os.path.join(self._root, _UNSAFE.sub("_", url.host), *segments)

    def _writer(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                break
            url, body = item
            path = self.path_for(url)
            try:
                os.makedirs(os.path.dirname(path), exist_ok=True)
                with open(path, "w", encoding="utf-8") as f:
                    f.write(body)
            except OSError as exc:
                print(f"could not save {url.value} to {path}: {exc}")


def write_report(path: str, urls: Iterable[str], emails: Optional[Iterable[str]] = None) -> None:
    """Write visited URLs one per line, followed by email addresses if given."""
    with open(path, "w", encoding="utf-8") as f:
        for url in urls:
            f.write(url + "\n")
        if emails is not None:
            for addr in emails:
                f.write(addr + "\n")
