from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional

from spider.engine import CrawlEngine
from spider.errors import ConfigError
from spider.events import JsonEventSink
from spider.metrics import MetricsCollector
from spider.models import DEFAULT_RECURSION, DEFAULT_RPS, DEFAULT_TIMEOUT, CrawlConfig
from spider.storage import PageStorage, write_report


BANNER = "spider: crawl a website for other URLs and email addresses"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="A simple program to crawl a website for other URLs.")
    parser.add_argument("url", help="The URL to start crawling from")

    parser.add_argument("-r", "--recursion", type=int, default=DEFAULT_RECURSION, help="The recursion limit")
    parser.add_argument("-m", "--show-mail", action="store_true", help="Show mail addresses found")
    parser.add_argument(
        "-i", "--include-external-domains", action="store_true", help="Extend crawling to external URLs found"
    )
    parser.add_argument(
        "-s",
        "--save-files",
        action="store_true",
        help="Save all pages fetched into a new directory named after the website",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="File to write the visited URLs to (and mail addresses, if --show-mail is set)",
    )

    parser.add_argument("--rps", type=float, default=DEFAULT_RPS, help="Global requests-per-second budget")
    parser.add_argument("--workers", type=int, default=None, help="Worker threads (default: one per request slot)")
    parser.add_argument("--max-pages", type=int, default=None, help="Stop queueing new URLs after this many")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Per-request timeout in seconds")
    parser.add_argument("--retries", type=int, default=0, help="Retries for network failures")
    parser.add_argument("--impersonate", default=None, help="Fetch through curl_cffi as this browser (e.g. chrome120)")
    parser.add_argument("--user-agent", default=None, help="User-Agent header (default: desktop Chrome, or the impersonated browser's own)")
    return parser


def build_config(args: argparse.Namespace) -> CrawlConfig:
    return CrawlConfig.create(
        seed_url=args.url,
        requests_per_second=args.rps,
        include_external=args.include_external_domains,
        show_mail=args.show_mail,
        max_depth=args.recursion,
        max_pages=args.max_pages,
        workers=args.workers,
        timeout=args.timeout,
        max_retries=args.retries,
        user_agent=args.user_agent,
        impersonate=args.impersonate,
        output=args.output,
        save_files=args.save_files,
    )


def run_crawl(config: CrawlConfig) -> int:
    events = JsonEventSink(muted=() if config.show_mail else ("email_found",))
    metrics = MetricsCollector()
    storage = PageStorage(os.getcwd()) if config.save_files else None

    engine = CrawlEngine(config, events=events, metrics=metrics, storage=storage)
    engine.start()
    try:
        while not engine.wait(timeout=0.5):
            pass
    except KeyboardInterrupt:
        engine.cancel()
        engine.wait()
    finally:
        if storage is not None:
            storage.close()

    result = engine.result()
    summary = metrics.summary()

    print("\nVisited URLs:")
    for url in result.visited:
        print(f"  {url}")
    if config.show_mail:
        print("\nMail addresses:")
        for addr in result.emails:
            print(f"  {addr}")

    if config.output:
        write_report(config.output, result.visited, result.emails if config.show_mail else None)

    print(
        f"\nDONE: visited={len(result.visited)} success={summary.succeeded} fail={summary.failed} "
        f"emails={len(result.emails)} avg_latency_ms={summary.avg_latency_ms:.0f} state={result.state}"
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = build_config(args)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(BANNER)
    return run_crawl(config)


if __name__ == "__main__":
    sys.exit(main())
