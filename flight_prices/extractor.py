"""
Turns a rendered results page into flight observations.

Each result block on the page is one itinerary with one or more fare offers.
The itinerary fields (airline, times, stops) are read once per block; every
fare offer becomes its own observation carrying those shared fields plus its
own price and cabin class.

Layout of a result block, as located from the airline label (the only
``div`` inside the block that carries a ``dir`` attribute)::

    div[@data-resultid]
      ...
        div                       <- times row: departure, separator, arrival
        div[@dir]                 <- airline label
      div
        div/span                  <- stops summary
      ...
      a                           <- first offer: price and nearby cabin label
      a, a                        <- summary / decorative slots
      a ...                       <- further offers: div/div pairs (price, cabin)
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from .errors import (
    ExtractionFailure,
    FailureKind,
    NodeNotFound,
    SessionFault,
    StalePage,
)
from .page import PageNode, PageSession
from .records import FlightObservation


RESULTS_CONTAINER_XPATH = '//div[@class="resultsList"]'
RESULT_BLOCKS_XPATH = '//div[@class="resultsList"]/div/div/div[@data-resultid]'
AIRLINE_XPATH = ".//div[@dir]"
TIMES_XPATH = "preceding-sibling::div/*"
DAY_OFFSET_XPATH = "*"
STOPS_XPATH = "../following-sibling::div/div[1]/span"
OFFERS_XPATH = ".//a"
BASE_PRICE_XPATH = "./div[1]/div[1]/div/div"
BASE_CABIN_XPATH = "../..//div[@title]"
VARIANT_PARTS_XPATH = "./div/div"

# Slots 1 and 2 of the offer list are summary links, not fare offers.
FIRST_VARIANT_SLOT = 3
PLACEHOLDER_PRICE = "View Deal"
NON_AIR_CARRIERS = frozenset({"amtrak"})

TIME_FORMATS = ("%I:%M%p", "%H:%M")
DAY_OFFSET_PATTERN = re.compile(r"\+\s*(\d+)")


def parse_clock(text: str) -> time:
    """Parse displayed clock text such as ``7:05am``, ``7:05 PM`` or ``19:05``."""
    cleaned = "".join(text.split()).upper()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised time text {text!r}")


def on_date(search_date: date, clock_text: str, extra_days: int = 0) -> datetime:
    clock = parse_clock(clock_text)
    moment = datetime(search_date.year, search_date.month, search_date.day, clock.hour, clock.minute)
    return moment + timedelta(days=extra_days)


def read_arrival(node: PageNode, search_date: date) -> Tuple[datetime, int]:
    """
    Arrival time and the number of days it rolls over.

    An overnight arrival carries a child element holding ``+N``; the clock text
    is everything before the ``+``. Without such a child the flight lands on
    the search date, as it does when the child holds no ``+N``.
    """
    text = node.text
    try:
        indicator = node.find(DAY_OFFSET_XPATH)
    except NodeNotFound:
        return on_date(search_date, text), 0

    match = DAY_OFFSET_PATTERN.search(indicator.text)
    if match is None:
        clock_text = text.replace(indicator.text, "", 1) if indicator.text else text
        return on_date(search_date, clock_text), 0

    extra_days = int(match.group(1))
    clock_text = text.split("+", 1)[0]
    return on_date(search_date, clock_text, extra_days), extra_days


def is_non_air(airline: str) -> bool:
    return airline.casefold() in NON_AIR_CARRIERS


def extract_block(block: PageNode, search_date: date, collected_at: datetime) -> List[FlightObservation]:
    airline_node = block.find(AIRLINE_XPATH)
    airline = airline_node.text

    time_nodes = airline_node.find_all(TIMES_XPATH)
    if len(time_nodes) < 3:
        raise NodeNotFound(f"Expected departure and arrival times next to {airline!r}")

    departure_time = on_date(search_date, time_nodes[0].text)
    arrival_time, _ = read_arrival(time_nodes[2], search_date)
    if arrival_time < departure_time:
        # Stored fares never arrive before they depart.
        print(
            f"[WARN] Skipping {airline}: arrival {arrival_time:%H:%M} precedes departure "
            f"{departure_time:%H:%M} on {search_date:%Y-%m-%d}"
        )
        return []

    stop_count = airline_node.find(STOPS_XPATH).text

    offers = block.find_all(OFFERS_XPATH)
    if not offers:
        raise NodeNotFound(f"No fare offers for {airline!r}")

    first_offer = offers[0]
    cabin_class: Optional[str] = None
    if not is_non_air(airline):
        cabin_class = first_offer.find(BASE_CABIN_XPATH).text

    base = FlightObservation(
        collected_at=collected_at,
        airline=airline,
        departure_time=departure_time,
        arrival_time=arrival_time,
        stop_count=stop_count,
        price=first_offer.find(BASE_PRICE_XPATH).text,
        cabin_class=cabin_class,
    )
    observations = [base]

    for offer in offers[FIRST_VARIANT_SLOT:]:
        parts = offer.find_all(VARIANT_PARTS_XPATH)
        if not parts:
            raise NodeNotFound(f"Fare offer for {airline!r} has no price")
        price = parts[0].text
        if price == PLACEHOLDER_PRICE:
            break
        if len(parts) < 2:
            raise NodeNotFound(f"Fare offer {price!r} for {airline!r} has no cabin class")
        observations.append(base.with_fare(price, parts[1].text))

    return observations


def extract_flights(
    page: PageSession,
    search_date: date,
    collected_at: Optional[datetime] = None,
) -> List[FlightObservation]:
    """
    Read every result block on the current page.

    Raises:
        ExtractionFailure: the page had no result blocks, went stale while
            being read, or did not have the expected structure.
        ValueError: a time label could not be parsed.
    """
    collected_at = collected_at or datetime.now()

    try:
        blocks = page.find_all(RESULT_BLOCKS_XPATH)
        if not blocks:
            raise ExtractionFailure(FailureKind.NO_RESULT_BLOCKS, "No results found.")

        flights: List[FlightObservation] = []
        for block in blocks:
            flights.extend(extract_block(block, search_date, collected_at))
    except StalePage as exc:
        raise ExtractionFailure(FailureKind.STALE_PAGE, str(exc)) from exc
    except (NodeNotFound, SessionFault) as exc:
        raise ExtractionFailure(FailureKind.AUTOMATION, str(exc)) from exc

    return flights
