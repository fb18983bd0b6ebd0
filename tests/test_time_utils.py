"""Tests for time utilities."""

from datetime import datetime
from zoneinfo import ZoneInfo

from onmymind.utils.time_utils import (
    format_duration,
    format_relative_time,
    from_db,
    from_utc,
    to_db,
    to_utc,
)


def test_to_utc():
    """Test timezone conversion to UTC."""
    # March 15 is DST in New York
    dt = datetime(2026, 3, 15, 14, 30, tzinfo=ZoneInfo("America/New_York"))
    utc_dt = to_utc(dt)

    assert utc_dt.tzinfo == ZoneInfo("UTC")
    # EDT is UTC-4, so 14:30 EDT = 18:30 UTC
    assert utc_dt.hour == 18


def test_to_utc_naive_uses_given_zone():
    """Naive datetimes are interpreted in the given zone."""
    utc_dt = to_utc(datetime(2026, 1, 15, 9, 0), "Europe/Berlin")
    assert utc_dt.hour == 8


def test_from_utc():
    """Test timezone conversion from UTC."""
    dt = datetime(2026, 3, 15, 19, 30, tzinfo=ZoneInfo("UTC"))
    edt_dt = from_utc(dt, "America/New_York")

    assert edt_dt.tzinfo == ZoneInfo("America/New_York")
    assert edt_dt.hour == 15  # 19:30 UTC = 15:30 EDT


def test_db_timestamps_are_utc_and_sortable():
    """Stored timestamps normalize to UTC with a fixed width."""
    local = datetime(2026, 3, 15, 14, 30, tzinfo=ZoneInfo("America/New_York"))
    stored = to_db(local)

    assert stored == "2026-03-15T18:30:00.000000+00:00"
    assert from_db(stored) == local
    assert to_db(datetime(2026, 3, 15, 18, 30, 0, 5, tzinfo=ZoneInfo("UTC"))) > stored


def test_format_duration():
    """Test duration formatting."""
    assert format_duration(1) == "1 minute"
    assert format_duration(15) == "15 minutes"
    assert format_duration(60) == "1 hour"
    assert format_duration(90) == "1.5 hours"
    assert format_duration(1440) == "1 day"
    assert format_duration(2880) == "2 days"


def test_format_relative_time():
    """Test relative time formatting."""
    now = datetime(2026, 3, 15, 12, 0, tzinfo=ZoneInfo("UTC"))

    # Future
    future_5min = datetime(2026, 3, 15, 12, 5, tzinfo=ZoneInfo("UTC"))
    assert format_relative_time(future_5min, now) == "in 5 minutes"

    future_30h = datetime(2026, 3, 16, 18, 0, tzinfo=ZoneInfo("UTC"))
    assert format_relative_time(future_30h, now) == "tomorrow"

    # Past
    past_2h = datetime(2026, 3, 15, 10, 0, tzinfo=ZoneInfo("UTC"))
    assert format_relative_time(past_2h, now) == "2 hours ago"
