import sys
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.utils.datetime_utils import ensure_utc, parse_to_utc, utcnow

FALLBACK = datetime(2025, 1, 1, tzinfo=timezone.utc)


def test_parse_rfc822_gmt():
    dt = parse_to_utc("Tue, 15 Jan 2019 12:45:26 GMT")
    assert dt == datetime(2019, 1, 15, 12, 45, 26, tzinfo=timezone.utc)
    assert dt.utcoffset() == timedelta(0)


def test_parse_iso_with_offset_converts_to_utc():
    dt = parse_to_utc("2025-09-30T12:00:00-03:00")
    assert dt == datetime(2025, 9, 30, 15, 0, tzinfo=timezone.utc)
    assert dt.tzinfo == timezone.utc


def test_naive_values_are_taken_as_utc():
    assert parse_to_utc("2024-01-01 00:00:00") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert parse_to_utc(datetime(2024, 1, 1)) == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_struct_time_from_feedparser():
    parsed = time.struct_time((2025, 3, 10, 8, 30, 0, 0, 69, 0))
    assert parse_to_utc(parsed) == datetime(2025, 3, 10, 8, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [None, "", "no es una fecha"])
def test_unparseable_values_use_fallback(value):
    assert parse_to_utc(value, fallback=FALLBACK) == FALLBACK


def test_missing_value_defaults_to_now():
    before = utcnow()
    dt = parse_to_utc(None)
    assert before <= dt <= utcnow()


def test_ensure_utc():
    assert ensure_utc(None) is None
    assert ensure_utc(datetime(2025, 1, 1, 12)) == datetime(2025, 1, 1, 12, tzinfo=timezone.utc)
    madrid = timezone(timedelta(hours=1))
    assert ensure_utc(datetime(2025, 1, 1, 13, tzinfo=madrid)).hour == 12


@pytest.mark.parametrize(
    "value",
    [
        "0000-00-00",
        "Fri, 31 Dec 9999 23:59:59 -1200",
        datetime(9999, 12, 31, 23, 59, tzinfo=timezone(timedelta(hours=-12))),
        time.struct_time((99999, 1, 1, 0, 0, 0, 0, 1, 0)),
    ],
)
def test_out_of_range_dates_use_fallback(value):
    assert parse_to_utc(value, fallback=FALLBACK) == FALLBACK
