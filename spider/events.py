from __future__ import annotations

import json
import sys
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, TextIO


class EventSink(ABC):
    """Receives structured crawl events. The engine never prints directly."""

    @abstractmethod
    def emit(self, event: str, **fields: Any) -> None:
        ...


class NullEventSink(EventSink):
    def emit(self, event: str, **fields: Any) -> None:
        pass


class MemoryEventSink(EventSink):
    """Keeps every event in memory, in emission order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: List[Dict[str, Any]] = []

    def emit(self, event: str, **fields: Any) -> None:
        with self._lock:
            self._events.append({"event": event, **fields})

    def events(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._lock:
            return [e for e in self._events if name is None or e["event"] == name]


class JsonEventSink(EventSink):
    """Prints one JSON object per event line.

    Events named in ``muted`` are dropped; the CLI uses this to hide
    email_found unless addresses were asked for."""

    def __init__(self, stream: Optional[TextIO] = None, muted: Iterable[str] = ()) -> None:
        self._stream = stream
        self._muted = frozenset(muted)
        self._lock = threading.Lock()

    def emit(self, event: str, **fields: Any) -> None:
        if event in self._muted:
            return
        record = {"timestamp": time.time(), "event": event, **fields}
        line = json.dumps(record, ensure_ascii=False, default=str)
        with self._lock:
            print(line, file=self._stream or sys.stdout, flush=True)
