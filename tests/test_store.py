import pandas as pd
import pytest

from flight_prices.errors import StoreWriteError
from flight_prices.records import COLUMNS
from flight_prices.store import RecordStore, observations_to_frame

HEADER = '"Date Collected","Airline","Departure Time","Arrival Time","Number of Stops","Price","Cabin Class"'


def test_ensure_initialized_writes_quoted_header(tmp_path):
    store = RecordStore(tmp_path / "nested" / "prices.csv")

    assert store.ensure_initialized() is True

    assert store.path.read_text() == HEADER + "\n"


def test_ensure_initialized_is_idempotent(store, observation):
    store.append([observation])
    before = store.path.read_text()

    assert store.ensure_initialized() is False
    assert store.ensure_initialized() is False

    assert store.path.read_text() == before
    assert before.count("Date Collected") == 1


def test_append_writes_display_text_rows(store, observation):
    written = store.append([observation, observation.with_fare("$289", "Main Cabin")])

    assert written == 2
    lines = store.path.read_text().splitlines()
    assert lines[0] == HEADER
    assert lines[1] == (
        '"1/15/2024 9:30 AM","Delta","2/10/2024 7:05 AM","2/10/2024 10:10 AM","nonstop","$245","Basic Economy"'
    )
    assert lines[2].endswith('"$289","Main Cabin"')


def test_append_keeps_batch_order_and_duplicates(store, observation):
    batch = [observation.with_fare("$300", "First"), observation, observation]

    store.append(batch)
    store.append(batch)

    frame = store.load()
    assert list(frame["Price"]) == ["$300", "$245", "$245"] * 2


def test_empty_batch_writes_nothing(store):
    assert store.append([]) == 0
    assert store.path.read_text() == HEADER + "\n"


def test_round_trip_with_commas_and_quotes(store, observation):
    tricky = observation.with_fare('$1,024 "sale"', "Premium, Economy")
    rail = observation.with_fare("$98", None)

    store.append([tricky, rail])

    frame = store.load()
    assert list(frame.columns) == COLUMNS
    assert frame.values.tolist() == [tricky.as_row(), rail.as_row()]
    assert frame.loc[1, "Cabin Class"] == ""


def test_failed_write_is_retried_until_it_succeeds(store, observation, sleeps, monkeypatch):
    real_to_csv = pd.DataFrame.to_csv
    failures = {"left": 3}

    def locked_to_csv(self, *args, **kwargs):
        if failures["left"]:
            failures["left"] -= 1
            raise PermissionError("file is open in another program")
        return real_to_csv(self, *args, **kwargs)

    monkeypatch.setattr(pd.DataFrame, "to_csv", locked_to_csv)

    assert store.append([observation]) == 1

    monkeypatch.undo()
    assert sleeps == [0.5, 0.5, 0.5]
    assert len(store.load()) == 1


def test_write_cap_raises_store_write_error(tmp_path, observation, monkeypatch):
    sleeps = []
    store = RecordStore(tmp_path / "prices.csv", retry_delay=1.0, max_attempts=2, sleep=sleeps.append)
    store.ensure_initialized()

    def always_locked(self, *args, **kwargs):
        raise PermissionError("locked")

    monkeypatch.setattr(pd.DataFrame, "to_csv", always_locked)

    with pytest.raises(StoreWriteError) as excinfo:
        store.append([observation])

    assert excinfo.value.attempts == 2
    assert isinstance(excinfo.value.__cause__, PermissionError)
    assert sleeps == [1.0]


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        RecordStore(tmp_path / "absent.csv").load()


def test_observations_to_frame_column_order(observation):
    frame = observations_to_frame([observation])

    assert list(frame.columns) == COLUMNS
    assert frame.iloc[0]["Departure Time"] == "2/10/2024 7:05 AM"
    assert frame.iloc[0]["Date Collected"] == "1/15/2024 9:30 AM"
