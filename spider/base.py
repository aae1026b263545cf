from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from .errors import FetchError
from .models import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT

_TEXT_TYPES = ("text/", "application/xhtml", "application/xml", "application/json", "application/javascript")


class PageFetcher(ABC):
    """Abstract base class for one-shot page retrieval.

    fetch() performs a single GET and returns the body as text:
    - Any 2xx status is success; anything else raises FetchError(HTTP).
    - Transport failures surface from _send() as FetchError(NETWORK).
    - Non-text content or bytes that do not decode raise FetchError(DECODE).
    No retries happen here.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self._timeout = timeout
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        }

    def fetch(self, url: str) -> str:
        if not url:
            raise ValueError("url is required")
        response = self._send(url)
        status_code = getattr(response, "status_code", None)
        if status_code is None or not 200 <= int(status_code) < 300:
            raise FetchError.http(status_code)
        return self._decode(response)

    @abstractmethod
    def _send(self, url: str) -> Any:
        """Issue the GET request, raising FetchError(NETWORK) on transport errors."""
        ...

    @staticmethod
    def _decode(response: Any) -> str:
        content_type = _header(response, "Content-Type")
        if content_type and not content_type.lower().startswith(_TEXT_TYPES):
            raise FetchError.decode(f"unsupported content type {content_type}")
        encoding = getattr(response, "encoding", None) or "utf-8"
        try:
            return response.content.decode(encoding)
        except (UnicodeDecodeError, LookupError) as exc:
            raise FetchError.decode(type(exc).__name__) from exc


def _header(response: Any, name: str) -> Optional[str]:
    headers = getattr(response, "headers", None) or {}
    return headers.get(name)
