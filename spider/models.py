from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

from .errors import ConfigError

DEFAULT_RECURSION = 5
DEFAULT_RPS = 2.0
DEFAULT_TIMEOUT = 20.0
MAX_WORKERS = 32
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120 Safari/537.36"
)

_ALLOWED_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class Url:
    """Normalized absolute http(s) URL.

    ``depth`` is the link distance from the seed; it does not take part in
    equality or hashing, so the same address found at two depths is one Url.
    """

    value: str
    host: str
    depth: int = field(default=0, compare=False)

    @classmethod
    def parse(cls, raw: str, base: Optional[str] = None, depth: int = 0) -> "Url":
        raw = (raw or "").strip()
        if not raw:
            raise ValueError("empty url")
        if base:
            raw = urljoin(base, raw)

        parts = urlsplit(raw)
        scheme = parts.scheme.lower()
        if scheme not in _ALLOWED_SCHEMES:
            raise ValueError(f"not an absolute http(s) url: {raw!r}")
        try:
            host = (parts.hostname or "").lower()
            port = parts.port
        except ValueError as exc:
            raise ValueError(f"invalid url {raw!r}: {exc}") from exc
        if not host:
            raise ValueError(f"url has no host: {raw!r}")

        netloc = f"[{host}]" if ":" in host else host
        if port is not None:
            netloc = f"{netloc}:{port}"
        if parts.username or parts.password:
            userinfo = parts.username or ""
            if parts.password:
                userinfo += f":{parts.password}"
            netloc = f"{userinfo}@{netloc}"
        path = parts.path or "/"
        value = urlunsplit((scheme, netloc, path, parts.query, ""))
        return cls(value=value, host=host, depth=depth)

    def __str__(self) -> str:
        return self.value


# Email addresses are plain strings, deduplicated by exact value.
EmailAddress = str


@dataclass(frozen=True)
class CrawlTask:
    """Outcome of one worker iteration over a single claimed URL."""

    url: Url
    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    links: Tuple[Url, ...] = ()
    emails: Tuple[str, ...] = ()
    latency_ms: int = 0
    attempts: int = 1


@dataclass(frozen=True)
class CrawlSummary:
    total: int
    succeeded: int
    failed: int
    failures_by_kind: Dict[str, int]
    avg_latency_ms: float


@dataclass(frozen=True)
class CrawlResult:
    visited: Tuple[str, ...]
    emails: Tuple[str, ...]
    succeeded: int
    failed: int
    failures: Tuple[Tuple[str, str], ...]
    state: str


def default_workers(requests_per_second: float) -> int:
    """One worker per admitted request slot, bounded."""
    return max(1, min(MAX_WORKERS, int(math.ceil(requests_per_second))))


@dataclass(frozen=True)
class CrawlConfig:
    seed: Url
    requests_per_second: float = DEFAULT_RPS
    include_external: bool = False
    show_mail: bool = False
    max_depth: Optional[int] = DEFAULT_RECURSION
    max_pages: Optional[int] = None
    workers: int = 1
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = 0
    user_agent: Optional[str] = None
    impersonate: Optional[str] = None
    output: Optional[str] = None
    save_files: bool = False

    @classmethod
    def create(
        cls,
        seed_url: str,
        requests_per_second: float = DEFAULT_RPS,
        include_external: bool = False,
        show_mail: bool = False,
        max_depth: Optional[int] = DEFAULT_RECURSION,
        max_pages: Optional[int] = None,
        workers: Optional[int] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 0,
        user_agent: Optional[str] = None,
        impersonate: Optional[str] = None,
        output: Optional[str] = None,
        save_files: bool = False,
    ) -> "CrawlConfig":
        """Validate raw settings and build the immutable run configuration."""
        try:
            seed = Url.parse(seed_url)
        except ValueError as exc:
            raise ConfigError(f"invalid seed url: {exc}") from exc

        if not requests_per_second or requests_per_second <= 0:
            raise ConfigError(f"requests per second must be positive, got {requests_per_second}")
        if workers is None:
            workers = default_workers(requests_per_second)
        if workers < 1:
            raise ConfigError(f"workers must be at least 1, got {workers}")
        if workers > MAX_WORKERS:
            raise ConfigError(f"workers must be at most {MAX_WORKERS}, got {workers}")
        if max_depth is not None and max_depth < 0:
            raise ConfigError(f"recursion limit must not be negative, got {max_depth}")
        if max_pages is not None and max_pages < 1:
            raise ConfigError(f"max pages must be at least 1, got {max_pages}")
        if max_retries < 0:
            raise ConfigError(f"retries must not be negative, got {max_retries}")
        if timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {timeout}")

        return cls(
            seed=seed,
            requests_per_second=float(requests_per_second),
            include_external=include_external,
            show_mail=show_mail,
            max_depth=max_depth,
            max_pages=max_pages,
            workers=workers,
            timeout=timeout,
            max_retries=max_retries,
            user_agent=user_agent,
            impersonate=impersonate,
            output=output,
            save_files=save_files,
        )
