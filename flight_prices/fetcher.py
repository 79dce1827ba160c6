"""
Collects the fares for a single departure date.

The results page is opened, given a fixed amount of time to settle and then
probed for the results list. A missing list means the site offers no flights
that day, which is not an error. Otherwise extraction is attempted up to
``max_attempts`` times with a fixed delay in between; the first successful
pass is appended to the store and no further attempts are made.
"""

from __future__ import annotations

import time
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from .config import ScraperConfig
from .errors import ExhaustedRetries, ExtractionFailure, NodeNotFound, PageError
from .extractor import RESULTS_CONTAINER_XPATH, extract_flights
from .page import PageSession
from .records import FlightObservation, format_date
from .store import RecordStore


SEARCH_URL = "https://www.kayak.com/flights/{origin}-{destination}/{date}?sort=price_a"

Extractor = Callable[[PageSession, date], List[FlightObservation]]


def build_search_url(origin: str, destination: str, search_date: date) -> str:
    """e.g. https://www.kayak.com/flights/TPA-JFK/2024-02-10?sort=price_a"""
    return SEARCH_URL.format(origin=origin, destination=destination, date=search_date.strftime("%Y-%m-%d"))


class DayFetcher:
    def __init__(
        self,
        session: PageSession,
        store: RecordStore,
        config: ScraperConfig,
        extract: Extractor = extract_flights,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session
        self.store = store
        self.config = config
        self.extract = extract
        self.sleep = sleep

    def search_url(self, search_date: date) -> str:
        return build_search_url(self.config.origin, self.config.destination, search_date)

    def has_results(self) -> bool:
        try:
            self.session.find(RESULTS_CONTAINER_XPATH)
        except NodeNotFound:
            return False
        return True

    def fetch_day(self, search_date: date) -> int:
        """
        Collect and store the fares for ``search_date``.

        Returns the number of rows appended, 0 when no flights are offered.

        Raises:
            ExhaustedRetries: every extraction attempt failed.
            SessionFault: the browser failed outside of extraction.
        """
        print(f"[INFO] Finding flights for {format_date(search_date)}")
        self.session.navigate(self.search_url(search_date))
        self.sleep(self.config.wait_time)

        # The results list is not rendered at all when no flights were found.
        if not self.has_results():
            print(f"[INFO] No flights found for {format_date(search_date)}.")
            return 0

        flights = self._extract_with_retries(search_date)
        print(f"[INFO] {len(flights)} Results Found for {format_date(search_date)}")
        if self.config.show_results:
            for flight in flights:
                print(flight.describe())

        return self.store.append(flights)

    def _extract_with_retries(self, search_date: date) -> List[FlightObservation]:
        retrying = Retrying(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=wait_fixed(self.config.retry_delay),
            retry=retry_if_exception_type(ExtractionFailure),
            sleep=self.sleep,
            before=self._announce_attempt,
            after=self._report_failure,
        )
        try:
            return retrying(self.extract, self.session, search_date)
        except RetryError as exc:
            failure = exc.last_attempt.exception()
            self._save_snapshot(search_date)
            raise ExhaustedRetries(search_date, exc.last_attempt.attempt_number, failure) from failure

    def _announce_attempt(self, retry_state: RetryCallState) -> None:
        print(f"[INFO] Attempt #{retry_state.attempt_number}")

    def _report_failure(self, retry_state: RetryCallState) -> None:
        failure = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(failure, ExtractionFailure):
            print(f"[WARN] Attempt #{retry_state.attempt_number} failed: {failure.kind.value} ({failure.message})")

    def _save_snapshot(self, search_date: date) -> Optional[Path]:
        if self.config.snapshot_dir is None:
            return None
        target = self.config.snapshot_dir / (
            f"{self.config.origin}-{self.config.destination}-{search_date.isoformat()}.html"
        )
        try:
            saved = self.session.save_snapshot(target)
        except (PageError, OSError) as exc:
            print(f"[WARN] Could not save page snapshot to {target} ({exc}).")
            return None
        print(f"[INFO] Saved page snapshot to {saved}")
        return saved
