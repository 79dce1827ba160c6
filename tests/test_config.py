from datetime import date
from pathlib import Path

import pytest

from flight_prices.config import ScraperConfig, config_from_args, parse_args


def test_defaults():
    config = config_from_args(parse_args([]))

    assert (config.origin, config.destination) == ("TPA", "JFK")
    assert config.days_to_search == 30
    assert config.max_attempts == 3
    assert config.max_write_attempts is None
    assert config.output_path == Path("data") / "flight_prices.csv"
    assert config.show_results is False


def test_overrides():
    config = config_from_args(
        parse_args(
            [
                "--start-date", "2024-02-10",
                "--days", "7",
                "--wait-time", "0",
                "--attempts", "5",
                "--max-write-attempts", "10",
                "--output", "out/prices.csv",
                "--snapshot-dir", "out/snapshots",
                "--show-results",
            ]
        )
    )

    assert config.start_date == date(2024, 2, 10)
    assert config.end_date == date(2024, 2, 17)
    assert config.wait_time == 0
    assert config.max_attempts == 5
    assert config.max_write_attempts == 10
    assert config.snapshot_dir == Path("out/snapshots")
    assert config.show_results is True


def test_search_dates_cover_window_across_month_end():
    config = ScraperConfig(start_date=date(2024, 2, 28), days_to_search=3)

    assert config.search_dates() == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]


@pytest.mark.parametrize(
    "argv",
    [["--start-date", "10/02/2024"], ["--days", "0"], ["--attempts", "-1"]],
)
def test_invalid_arguments_exit(argv):
    with pytest.raises(SystemExit):
        parse_args(argv)


@pytest.mark.parametrize(
    "kwargs",
    [{"origin": "Tampa"}, {"days_to_search": 0}, {"max_attempts": 0}, {"retry_delay": -1.0}],
)
def test_invalid_config(kwargs):
    with pytest.raises(ValueError):
        ScraperConfig(**kwargs)
