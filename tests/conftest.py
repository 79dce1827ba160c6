from datetime import date, datetime
from typing import Iterable, Optional, Tuple

import pytest

from flight_prices.config import ScraperConfig
from flight_prices.page import HtmlPage
from flight_prices.records import FlightObservation
from flight_prices.store import RecordStore


SEARCH_DATE = date(2024, 2, 10)
COLLECTED_AT = datetime(2024, 1, 15, 9, 30)


def result_block(
    result_id: str = "r1",
    airline: str = "Delta",
    departure: str = "7:05 am",
    arrival: str = "10:10 am",
    day_offset: Optional[str] = None,
    stops: str = "nonstop",
    base_price: str = "$245",
    base_cabin: Optional[str] = "Basic Economy",
    variants: Iterable[Tuple[str, str]] = (),
) -> str:
    """One itinerary laid out the way the results list renders it."""
    arrival_html = f"{arrival}<span class=\"days\">{day_offset}</span>" if day_offset else arrival
    cabin_html = f'<div title="{base_cabin}">{base_cabin}</div>' if base_cabin else ""
    variants_html = "".join(
        f'<a href="#offer"><div><div>{price}</div><div>{cabin}</div></div></a>' for price, cabin in variants
    )
    return f"""
    <div data-resultid="{result_id}">
      <div class="legs">
        <div class="times">
          <div class="times-row"><span>{departure}</span><span>-</span><span>{arrival_html}</span></div>
          <div dir="auto">{airline}</div>
        </div>
        <div class="stops"><div><span>{stops}</span></div><div>ATL</div></div>
      </div>
      <div class="prices">
        <div class="booking">
          <div class="main-offer">
            <a href="#book"><div><div><div><div>{base_price}</div></div></div></div></a>
          </div>
          {cabin_html}
        </div>
        <a href="#share">Share</a>
        <a href="#compare">Compare</a>
        {variants_html}
      </div>
    </div>
    """


def results_page(*blocks: str) -> str:
    return (
        '<html><body><div class="resultsList"><div><div>'
        + "".join(blocks)
        + "</div></div></div></body></html>"
    )


NO_RESULTS_PAGE = '<html><body><div class="noResults">No flights found</div></body></html>'


@pytest.fixture
def search_date():
    return SEARCH_DATE


@pytest.fixture
def observation():
    return FlightObservation(
        collected_at=COLLECTED_AT,
        airline="Delta",
        departure_time=datetime(2024, 2, 10, 7, 5),
        arrival_time=datetime(2024, 2, 10, 10, 10),
        stop_count="nonstop",
        price="$245",
        cabin_class="Basic Economy",
    )


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def config(tmp_path):
    return ScraperConfig(
        origin="TPA",
        destination="JFK",
        start_date=SEARCH_DATE,
        days_to_search=3,
        wait_time=10.0,
        max_attempts=3,
        retry_delay=2.0,
        write_retry_delay=0.5,
        output_path=tmp_path / "prices.csv",
    )


@pytest.fixture
def store(config, sleeps):
    store = RecordStore(config.output_path, retry_delay=config.write_retry_delay, sleep=sleeps.append)
    store.ensure_initialized()
    return store


@pytest.fixture
def one_flight_page():
    return HtmlPage(results_page(result_block()))
