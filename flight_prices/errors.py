"""
Exception types shared by the page layer, the extractor, the day fetcher and
the CSV store.

Only `ExtractionFailure` is recovered locally (by the day fetcher's retry
loop). `ExhaustedRetries` and `SessionFault` end the crawl.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from pathlib import Path
from typing import Optional


class PageError(Exception):
    """Base class for failures reported by a page session."""


class NodeNotFound(PageError):
    """A structural lookup matched nothing."""


class StalePage(PageError):
    """The page changed underneath a node that was already located."""


class SessionFault(PageError):
    """Any other browser / automation-layer failure."""


class FailureKind(str, Enum):
    STALE_PAGE = "stale_page"
    AUTOMATION = "automation"
    NO_RESULT_BLOCKS = "no_result_blocks"


class ExtractionFailure(Exception):
    """A single extraction pass failed; the caller may try again."""

    def __init__(self, kind: FailureKind, message: str = "") -> None:
        self.kind = kind
        self.message = message or kind.value.replace("_", " ")
        super().__init__(f"{self.kind.value}: {self.message}")


class ExhaustedRetries(Exception):
    """Every extraction attempt for a date failed."""

    def __init__(self, search_date: date, attempts: int, last_failure: Optional[ExtractionFailure] = None) -> None:
        self.search_date = search_date
        self.attempts = attempts
        self.last_failure = last_failure
        super().__init__(
            f"Unable to get flight data for {search_date.month}/{search_date.day}/{search_date.year}."
        )


class StoreWriteError(Exception):
    """Raised only when a write-attempt cap is configured and reached."""

    def __init__(self, path: Path, attempts: int) -> None:
        self.path = path
        self.attempts = attempts
        super().__init__(f"Writing to {path} failed after {attempts} attempts.")
