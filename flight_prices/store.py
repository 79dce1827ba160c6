"""
Append-only CSV storage for flight observations.

The file starts with a quoted header row and gains one fully quoted row per
observation. Rows are never rewritten, reordered or de-duplicated.

Another process (a spreadsheet, a sync client) may hold the file open, so a
failed row write is retried after a fixed delay. By default there is no cap
on the number of attempts; pass ``max_attempts`` to give up with
`StoreWriteError` instead of waiting forever.
"""

from __future__ import annotations

import csv
import time
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import pandas as pd
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    wait_fixed,
)

from .errors import StoreWriteError
from .records import COLUMNS, FlightObservation, format_date


DEFAULT_WRITE_RETRY_DELAY = 1.0


def observations_to_frame(observations: Sequence[FlightObservation]) -> pd.DataFrame:
    return pd.DataFrame([observation.as_row() for observation in observations], columns=COLUMNS)


class RecordStore:
    def __init__(
        self,
        path: Union[str, Path],
        retry_delay: float = DEFAULT_WRITE_RETRY_DELAY,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.path = Path(path)
        self.retry_delay = retry_delay
        self.max_attempts = max_attempts
        self.sleep = sleep

    def ensure_initialized(self) -> bool:
        """Create the file with its header row. Returns False if it already existed."""
        if self.path.exists():
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        header = pd.DataFrame(columns=COLUMNS)
        header.to_csv(self.path, index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
        return True

    def append(self, observations: Sequence[FlightObservation]) -> int:
        if not observations:
            return 0

        frame = observations_to_frame(observations)
        for position in range(len(frame)):
            self._write_row(frame.iloc[position : position + 1])

        print(f"[INFO] Successfully appended data for {format_date(observations[0].departure_time)}.")
        return len(frame)

    def load(self) -> pd.DataFrame:
        """Read the stored rows back, every cell as text."""
        if not self.path.exists():
            raise FileNotFoundError(f"Flight data CSV not found at {self.path}")
        return pd.read_csv(self.path, dtype=str, keep_default_na=False)

    def _write_row(self, row: pd.DataFrame) -> None:
        stop = stop_never if self.max_attempts is None else stop_after_attempt(self.max_attempts)
        retrying = Retrying(
            stop=stop,
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception_type(OSError),
            sleep=self.sleep,
            before_sleep=self._report_failed_write,
        )
        try:
            for attempt in retrying:
                with attempt:
                    row.to_csv(
                        self.path,
                        mode="a",
                        header=False,
                        index=False,
                        quoting=csv.QUOTE_ALL,
                        lineterminator="\n",
                    )
        except RetryError as exc:
            raise StoreWriteError(self.path, exc.last_attempt.attempt_number) from exc.last_attempt.exception()

    def _report_failed_write(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        print(f"[WARN] Writing to {self.path} failed ({error}), trying again...")
