from __future__ import annotations

from typing import Any, Optional

import requests
from curl_cffi import CurlError
from curl_cffi import requests as curl_requests

from .base import PageFetcher
from .errors import FetchError
from .models import CrawlConfig, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT


class RequestsFetcher(PageFetcher):
    """Plain HTTP GET through requests. Safe to share between worker threads."""

    def _send(self, url: str) -> Any:
        try:
            return requests.get(url, headers=self._headers, timeout=self._timeout, allow_redirects=True)
        except requests.RequestException as exc:
            raise FetchError.network(exc) from exc


class ImpersonatingFetcher(PageFetcher):
    """HTTP GET through curl_cffi, presenting a real browser's TLS fingerprint.

    A session per call avoids sharing curl handles across threads."""

    def __init__(
        self,
        impersonate: str = "chrome120",
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: Optional[str] = None,
    ) -> None:
        super().__init__(timeout=timeout, user_agent=user_agent or DEFAULT_USER_AGENT)
        self._impersonate = impersonate
        if user_agent is None:
            # let the impersonated browser send its own UA
            self._headers.pop("User-Agent", None)

    def _send(self, url: str) -> Any:
        session = curl_requests.Session()
        try:
            return session.get(
                url,
                headers=self._headers,
                impersonate=self._impersonate,
                timeout=self._timeout,
                allow_redirects=True,
            )
        except CurlError as exc:
            raise FetchError.network(exc) from exc
        finally:
            session.close()


def create_fetcher(config: CrawlConfig) -> PageFetcher:
    if config.impersonate:
        return ImpersonatingFetcher(
            impersonate=config.impersonate, timeout=config.timeout, user_agent=config.user_agent
        )
    return RequestsFetcher(timeout=config.timeout, user_agent=config.user_agent or DEFAULT_USER_AGENT)
