from __future__ import annotations

from .models import Url


def in_scope(candidate: Url, origin: Url, allow_external: bool) -> bool:
    """Decide whether a discovered URL belongs to the crawl.

    ``origin`` is the seed URL of the run, never the page the candidate was
    found on. Hosts must match exactly (case-insensitive); subdomains of the
    origin host are out of scope."""
    if allow_external:
        return True
    return candidate.host.lower() == origin.host.lower()
