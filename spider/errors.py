from __future__ import annotations

from enum import Enum
from typing import Optional


class ConfigError(ValueError):
    """Invalid run configuration. Fatal: raised before any worker starts."""


class ExtractionError(ValueError):
    """A page body could not be scanned for links or addresses."""


class FetchErrorKind(str, Enum):
    NETWORK = "network"
    HTTP = "http"
    DECODE = "decode"


class FetchError(Exception):
    """Per-URL fetch failure. Recorded and counted; never aborts the crawl."""

    def __init__(self, kind: FetchErrorKind, message: str = "", status: Optional[int] = None) -> None:
        super().__init__(message or kind.value)
        self.kind = kind
        self.status = status
        self.message = message

    @classmethod
    def network(cls, exc: BaseException) -> "FetchError":
        return cls(FetchErrorKind.NETWORK, f"{type(exc).__name__}: {exc}")

    @classmethod
    def http(cls, status: int) -> "FetchError":
        return cls(FetchErrorKind.HTTP, f"HTTP_{status}", status=status)

    @classmethod
    def decode(cls, message: str) -> "FetchError":
        return cls(FetchErrorKind.DECODE, message)

    @property
    def reason(self) -> str:
        if self.kind is FetchErrorKind.HTTP:
            return f"http:{self.status}"
        return f"{self.kind.value}:{self.message}" if self.message else self.kind.value
