"""
Raw data filter.

Reads every collector CSV in a folder, keeps the fares that match an airline,
a stop count and/or a cabin class, and writes them to a single CSV. Criteria
come from the ``FilterSettings`` section of a JSON settings file and can be
overridden on the command line::

    {
      "FilterSettings": {
        "Airline": "Delta",
        "StopCount": "nonstop",
        "CabinClass": "Main Cabin",
        "RawDataFolder": "data",
        "OutputLocation": "data/filtered/delta_nonstop.csv"
      }
    }
"""

from __future__ import annotations

import argparse
import csv
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from .records import COLUMNS


DEFAULT_SETTINGS = Path("settings.json")
SOURCE_COLUMN = "Source File"


@dataclass
class FilterSettings:
    raw_data_folder: Path
    output_location: Path
    airline: str = ""
    stop_count: str = ""
    cabin_class: str = ""


def load_settings(path: Path) -> FilterSettings:
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found at {path}")

    data = json.loads(path.read_text(encoding="utf-8"))
    section = data.get("FilterSettings")
    if not isinstance(section, dict):
        raise ValueError(f"No FilterSettings section found in {path}")

    try:
        return FilterSettings(
            raw_data_folder=Path(section["RawDataFolder"]),
            output_location=Path(section["OutputLocation"]),
            airline=section.get("Airline") or "",
            stop_count=section.get("StopCount") or "",
            cabin_class=section.get("CabinClass") or "",
        )
    except KeyError as exc:
        raise ValueError(f"FilterSettings in {path} is missing {exc.args[0]}") from exc


def load_raw_data(folder: Path) -> pd.DataFrame:
    if not folder.is_dir():
        raise FileNotFoundError(f"Raw data folder not found at {folder}")

    paths = sorted(folder.glob("*.csv"))
    if not paths:
        raise FileNotFoundError(f"No CSV files found in {folder}")

    frames = []
    for path in paths:
        print(path)
        frame = pd.read_csv(path, dtype=str, keep_default_na=False)
        missing = [column for column in COLUMNS if column not in frame.columns]
        if missing:
            print(f"[WARN] Skipping {path}: missing columns {', '.join(missing)}")
            continue
        frame[SOURCE_COLUMN] = path.name
        frames.append(frame)

    if not frames:
        raise ValueError(f"None of the CSV files in {folder} contain flight price data.")
    return pd.concat(frames, ignore_index=True)


def filter_observations(df: pd.DataFrame, settings: FilterSettings) -> pd.DataFrame:
    criteria = {
        "Airline": settings.airline,
        "Number of Stops": settings.stop_count,
        "Cabin Class": settings.cabin_class,
    }
    mask = pd.Series(True, index=df.index)
    for column, wanted in criteria.items():
        if wanted:
            mask &= df[column].str.strip().str.casefold() == wanted.strip().casefold()
    return df[mask]


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Filter collected flight prices by airline, stops and cabin.")
    parser.add_argument(
        "--settings",
        default=str(DEFAULT_SETTINGS),
        help="JSON file with a FilterSettings section (default: settings.json)",
    )
    parser.add_argument("--raw-data-folder", default=None, help="Folder of collector CSVs")
    parser.add_argument("--output", default=None, help="Where to write the filtered CSV")
    parser.add_argument("--airline", default=None, help="Airline to keep, e.g. Delta")
    parser.add_argument("--stops", default=None, help="Stop summary to keep, e.g. nonstop")
    parser.add_argument("--cabin", default=None, help="Cabin class to keep, e.g. Main Cabin")
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> FilterSettings:
    settings_path = Path(args.settings)
    if settings_path.exists():
        settings = load_settings(settings_path)
    elif args.raw_data_folder and args.output:
        settings = FilterSettings(raw_data_folder=Path(args.raw_data_folder), output_location=Path(args.output))
    else:
        raise FileNotFoundError(
            f"Settings file not found at {settings_path}; pass --raw-data-folder and --output instead."
        )

    if args.raw_data_folder:
        settings.raw_data_folder = Path(args.raw_data_folder)
    if args.output:
        settings.output_location = Path(args.output)
    if args.airline is not None:
        settings.airline = args.airline
    if args.stops is not None:
        settings.stop_count = args.stops
    if args.cabin is not None:
        settings.cabin_class = args.cabin
    return settings


def run_filter(settings: FilterSettings) -> pd.DataFrame:
    df = load_raw_data(settings.raw_data_folder)
    filtered = filter_observations(df, settings)

    settings.output_location.parent.mkdir(parents=True, exist_ok=True)
    filtered.to_csv(settings.output_location, index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    print(f"Kept {len(filtered)} of {len(df)} fares, saved to {settings.output_location}")
    return filtered


def main(argv: Optional[Iterable[str]] = None) -> None:
    args = parse_args(argv)
    try:
        run_filter(settings_from_args(args))
    except Exception as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
