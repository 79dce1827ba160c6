"""
Flight observation records and their CSV display text.

One `FlightObservation` is stored per fare offer. Offers for the same itinerary
are built with `FlightObservation.with_fare`, so they share every field except
the price and cabin class.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import List, Optional


COLUMNS = [
    "Date Collected",
    "Airline",
    "Departure Time",
    "Arrival Time",
    "Number of Stops",
    "Price",
    "Cabin Class",
]


def format_date(value: date) -> str:
    """Short date text, e.g. ``2/10/2024``."""
    return f"{value.month}/{value.day}/{value.year}"


def format_timestamp(value: datetime) -> str:
    """Short date-and-time text, e.g. ``2/10/2024 7:05 AM``."""
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{format_date(value)} {hour}:{value.minute:02d} {meridiem}"


@dataclass(frozen=True)
class FlightObservation:
    collected_at: datetime
    airline: str
    departure_time: datetime
    arrival_time: datetime
    stop_count: str
    price: str
    cabin_class: Optional[str] = None

    def with_fare(self, price: str, cabin_class: Optional[str]) -> "FlightObservation":
        """Another fare offer for the same itinerary."""
        return replace(self, price=price, cabin_class=cabin_class)

    def as_row(self) -> List[str]:
        return [
            format_timestamp(self.collected_at),
            self.airline,
            format_timestamp(self.departure_time),
            format_timestamp(self.arrival_time),
            self.stop_count,
            self.price,
            self.cabin_class or "",
        ]

    def describe(self) -> str:
        separator = "-" * 65
        return "\n".join(
            [
                separator,
                f"Airline: {self.airline}",
                f"Departure: {format_timestamp(self.departure_time)}",
                f"Arrival: {format_timestamp(self.arrival_time)}",
                f"Stop count: {self.stop_count}",
                f"Price: {self.price}",
                f"Cabin: {self.cabin_class or ''}",
                separator,
            ]
        )
