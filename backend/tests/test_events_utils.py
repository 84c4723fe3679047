import pytest
from datetime import datetime

from backend.events_service.utils import max_events_per_day, parse_dt, parse_leading_int, utc_day_bounds


def test_parse_dt_variants():
    assert parse_dt("2025-01-01T10:00:00Z") == datetime(2025, 1, 1, 10, 0, 0)
    assert parse_dt("2025-01-01T10:00") == datetime(2025, 1, 1, 10, 0, 0)
    assert parse_dt("2025-01-01T12:00:00+02:00") == datetime(2025, 1, 1, 10, 0, 0)


def test_parse_dt_invalid():
    assert parse_dt(None) is None
    assert parse_dt("") is None
    assert parse_dt("next friday") is None
    assert parse_dt(12345) is None


def test_utc_day_bounds():
    start, end = utc_day_bounds(datetime(2025, 3, 10, 23, 59, 59))
    assert start == datetime(2025, 3, 10)
    assert end == datetime(2025, 3, 11)


def test_max_events_per_day(monkeypatch):
    monkeypatch.delenv("MAX_EVENTS_PER_DAY", raising=False)
    assert max_events_per_day() == 5
    monkeypatch.setenv("MAX_EVENTS_PER_DAY", "12")
    assert max_events_per_day() == 12
    monkeypatch.setenv("MAX_EVENTS_PER_DAY", "5 # per day")
    assert max_events_per_day() == 5
    monkeypatch.setenv("MAX_EVENTS_PER_DAY", "five")
    with pytest.raises(ValueError):
        max_events_per_day()


def test_parse_leading_int():
    assert parse_leading_int("42") == 42
    assert parse_leading_int(" 7abc") == 7
    assert parse_leading_int("5.0") == 5
    assert parse_leading_int("-3") == -3
    assert parse_leading_int("abc") is None
    assert parse_leading_int("") is None
    assert parse_leading_int(None) is None
