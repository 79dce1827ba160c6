"""
Run settings for the price collector.

`parse_args` reads the command line and `config_from_args` turns it into a
frozen `ScraperConfig` that is passed explicitly to the crawler, the day
fetcher and the store.
"""

from __future__ import annotations

import argparse
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Iterable, List, Optional


DEFAULT_OUTPUT = Path("data") / "flight_prices.csv"
AIRPORT_CODE = re.compile(r"^[A-Z]{3}$")


@dataclass(frozen=True)
class ScraperConfig:
    origin: str = "TPA"
    destination: str = "JFK"
    start_date: date = field(default_factory=date.today)
    days_to_search: int = 30
    wait_time: float = 10.0
    max_attempts: int = 3
    retry_delay: float = 2.0
    write_retry_delay: float = 1.0
    max_write_attempts: Optional[int] = None
    output_path: Path = DEFAULT_OUTPUT
    show_results: bool = False
    headless: bool = False
    snapshot_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        for label, code in (("origin", self.origin), ("destination", self.destination)):
            if not AIRPORT_CODE.match(code):
                raise ValueError(f"Invalid {label} airport code ({code}). Expected three letters, e.g. TPA.")
        if self.days_to_search < 1:
            raise ValueError("days_to_search must be at least 1.")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if self.max_write_attempts is not None and self.max_write_attempts < 1:
            raise ValueError("max_write_attempts must be at least 1 when set.")
        if min(self.wait_time, self.retry_delay, self.write_retry_delay) < 0:
            raise ValueError("Delays cannot be negative.")

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=self.days_to_search)

    def search_dates(self) -> List[date]:
        return [self.start_date + timedelta(days=offset) for offset in range(self.days_to_search)]


def parse_date_arg(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date format ({value}). Expected YYYY-MM-DD.") from exc


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {value}.")
    return number


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Collect daily flight prices for one route over a window of dates into CSV."
    )
    parser.add_argument("--origin", default="TPA", help="Origin airport code (default: TPA)")
    parser.add_argument("--destination", default="JFK", help="Destination airport code (default: JFK)")
    parser.add_argument(
        "--start-date",
        dest="start_date",
        type=parse_date_arg,
        default=date.today(),
        help="First departure date in YYYY-MM-DD format (default: today)",
    )
    parser.add_argument("--days", type=positive_int, default=30, help="Number of days to search (default: 30)")
    parser.add_argument(
        "--wait-time",
        type=float,
        default=10.0,
        help="Seconds to let each results page settle before reading it (default: 10)",
    )
    parser.add_argument(
        "--attempts",
        type=positive_int,
        default=3,
        help="Maximum extraction attempts per date (default: 3)",
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        default=2.0,
        help="Seconds to wait between extraction attempts (default: 2)",
    )
    parser.add_argument(
        "--write-retry-delay",
        type=float,
        default=1.0,
        help="Seconds to wait before retrying a failed CSV write (default: 1)",
    )
    parser.add_argument(
        "--max-write-attempts",
        type=positive_int,
        default=None,
        help="Give up on a CSV row after this many failed writes (default: retry forever)",
    )
    parser.add_argument(
        "--output",
        default=str(DEFAULT_OUTPUT),
        help="Output CSV file path (default: data/flight_prices.csv)",
    )
    parser.add_argument("--show-results", action="store_true", help="Print every collected fare to the console")
    parser.add_argument("--headless", action="store_true", help="Run Chrome in headless mode")
    parser.add_argument(
        "--snapshot-dir",
        default=None,
        help="Save the page source of dates that could not be read into this folder",
    )
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> ScraperConfig:
    return ScraperConfig(
        origin=args.origin.upper(),
        destination=args.destination.upper(),
        start_date=args.start_date,
        days_to_search=args.days,
        wait_time=args.wait_time,
        max_attempts=args.attempts,
        retry_delay=args.retry_delay,
        write_retry_delay=args.write_retry_delay,
        max_write_attempts=args.max_write_attempts,
        output_path=Path(args.output),
        show_results=args.show_results,
        headless=args.headless,
        snapshot_dir=Path(args.snapshot_dir) if args.snapshot_dir else None,
    )
