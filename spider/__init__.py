"""Rate-limited recursive link and email crawler.

Starts from one URL, follows hyperlinks with a bounded pool of worker
threads and collects the pages visited and the email addresses found.

Key modules:
    engine          -- CrawlEngine: worker pool, quiescence detection, cancellation
    frontier        -- Frontier: deduplicated pending/visited URLs and found emails
    rate_limiter    -- RateLimiter: token-bucket admission control
    base            -- PageFetcher abstract fetch pipeline
    fetchers        -- RequestsFetcher, ImpersonatingFetcher implementations
    extractor       -- LinkExtractor for links and email addresses
    scope           -- in_scope() same-host filter
    backoff         -- RetryPolicy for network failures
    metrics         -- MetricsCollector for fetch statistics
    events          -- EventSink implementations (JSON lines, memory, null)
    storage         -- PageStorage and the output report writer
    models          -- Url, CrawlConfig, CrawlTask, CrawlResult dataclasses
    errors          -- ConfigError, FetchError, ExtractionError
"""
from .engine import CrawlEngine, EngineState
from .errors import ConfigError, ExtractionError, FetchError, FetchErrorKind
from .models import CrawlConfig, CrawlResult, Url

__all__ = [
    "ConfigError",
    "CrawlConfig",
    "CrawlEngine",
    "CrawlResult",
    "EngineState",
    "ExtractionError",
    "FetchError",
    "FetchErrorKind",
    "Url",
]
