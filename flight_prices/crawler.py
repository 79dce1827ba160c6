"""
Daily flight price collection.

Opens one Chrome session, walks the configured window of departure dates in
order and appends every fare found to the output CSV. A date whose results
could not be read after all attempts stops the whole run; restart it with
``--start-date`` set to that date.

Example:
    flight-prices --origin TPA --destination JFK --start-date 2024-02-10 --days 30
"""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, List, Optional

from .browser import BrowserPage
from .config import ScraperConfig, config_from_args, parse_args
from .fetcher import DayFetcher
from .page import PageSession
from .records import format_date
from .store import RecordStore


@dataclass
class CrawlSummary:
    dates_searched: List[date] = field(default_factory=list)
    dates_without_flights: List[date] = field(default_factory=list)
    records_written: int = 0


def crawl(
    config: ScraperConfig,
    session: Optional[PageSession] = None,
    store: Optional[RecordStore] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> CrawlSummary:
    if store is None:
        store = RecordStore(
            config.output_path,
            retry_delay=config.write_retry_delay,
            max_attempts=config.max_write_attempts,
            sleep=sleep,
        )
    if store.ensure_initialized():
        print(f"[INFO] Created {store.path}")

    if session is None:
        session = BrowserPage(headless=config.headless)

    banner = "-" * 50
    print(
        f"{banner}\n"
        f"Finding flights from {config.origin} to {config.destination},\n"
        f"starting on {format_date(config.start_date)} til {format_date(config.end_date)}\n"
        f"{banner}"
    )

    summary = CrawlSummary()
    try:
        fetcher = DayFetcher(session, store, config, sleep=sleep)
        for search_date in config.search_dates():
            written = fetcher.fetch_day(search_date)
            summary.dates_searched.append(search_date)
            summary.records_written += written
            if written == 0:
                summary.dates_without_flights.append(search_date)
    finally:
        session.close()

    print(
        f"[INFO] Program has finished: {summary.records_written} fares saved to {store.path} "
        f"({len(summary.dates_without_flights)} of {len(summary.dates_searched)} dates without flights)"
    )
    return summary


def main(argv: Optional[Iterable[str]] = None) -> None:
    args = parse_args(argv)
    try:
        crawl(config_from_args(args))
    except Exception as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
