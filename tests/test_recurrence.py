"""Tests for recurrence patterns and next-occurrence computation."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from onmymind.db.models import Recurrence, RecurrenceKind
from onmymind.engine.recurrence import RecurrenceEngine
from onmymind.errors import UnsupportedRecurrenceError

UTC = ZoneInfo("UTC")
NEW_YORK = ZoneInfo("America/New_York")

engine = RecurrenceEngine("UTC")


def just_after(dt: datetime) -> datetime:
    return dt + timedelta(seconds=30)


def test_daily():
    """Test that daily steps one day at the same time."""
    base = datetime(2024, 3, 13, 9, 0, tzinfo=UTC)
    assert engine.next_occurrence(Recurrence.daily(), base, just_after(base)) == datetime(
        2024, 3, 14, 9, 0, tzinfo=UTC
    )


def test_daily_catches_up_after_downtime():
    """Missed occurrences are skipped rather than fired one by one."""
    base = datetime(2024, 3, 10, 9, 0, tzinfo=UTC)
    now = datetime(2024, 3, 13, 10, 0, 30, tzinfo=UTC)

    assert engine.next_occurrence(Recurrence.daily(), base, now) == datetime(
        2024, 3, 14, 9, 0, tzinfo=UTC
    )


def test_weekday_skips_weekend():
    """Test that weekday recurrence jumps from Friday to Monday."""
    friday = datetime(2024, 3, 15, 9, 0, tzinfo=UTC)
    assert engine.next_occurrence(Recurrence.weekday(), friday, just_after(friday)) == datetime(
        2024, 3, 18, 9, 0, tzinfo=UTC
    )


def test_weekly():
    """Test weekly recurrence on one and on several days."""
    sunday = datetime(2024, 3, 17, 10, 0, tzinfo=UTC)
    recurrence = Recurrence.decode("weekly:sunday")
    assert engine.next_occurrence(recurrence, sunday, just_after(sunday)) == datetime(
        2024, 3, 24, 10, 0, tzinfo=UTC
    )

    monday = datetime(2024, 3, 18, 9, 0, tzinfo=UTC)
    recurrence = Recurrence.decode("weekly:monday,friday")
    assert engine.next_occurrence(recurrence, monday, just_after(monday)) == datetime(
        2024, 3, 22, 9, 0, tzinfo=UTC
    )


def test_monthly_last_in_leap_february():
    """The last day of January is followed by February 29 in a leap year."""
    recurrence = Recurrence.monthly("last")
    base = datetime(2024, 1, 31, 9, 0, tzinfo=UTC)

    february = engine.next_occurrence(recurrence, base, just_after(base))
    assert february == datetime(2024, 2, 29, 9, 0, tzinfo=UTC)

    march = engine.next_occurrence(recurrence, february, just_after(february))
    assert march == datetime(2024, 3, 31, 9, 0, tzinfo=UTC)


def test_monthly_first_and_fixed_day():
    """Test monthly recurrence on the first and on a fixed day."""
    base = datetime(2024, 1, 1, 8, 0, tzinfo=UTC)
    assert engine.next_occurrence(Recurrence.monthly("first"), base, just_after(base)) == datetime(
        2024, 2, 1, 8, 0, tzinfo=UTC
    )

    base = datetime(2024, 1, 15, 8, 0, tzinfo=UTC)
    assert engine.next_occurrence(Recurrence.monthly(15), base, just_after(base)) == datetime(
        2024, 2, 15, 8, 0, tzinfo=UTC
    )


def test_monthly_day_clamped():
    """A fixed day never goes past 28."""
    assert Recurrence.monthly(31).month_day == 28
    assert Recurrence.monthly(0).month_day == 1
    assert Recurrence.decode("monthly:30th").month_day == 28


def test_monthly_clamped_day_holds_for_a_year():
    """Every month, February included, lands on the 28th at the anchor time."""
    recurrence = Recurrence.monthly(31)
    due = datetime(2024, 1, 28, 9, 15, tzinfo=UTC)

    months = []
    for _ in range(14):
        due = engine.next_occurrence(recurrence, due, just_after(due))
        assert (due.day, due.hour, due.minute) == (28, 9, 15)
        months.append((due.year, due.month))

    assert months[0] == (2024, 2)
    assert months[-1] == (2025, 3)
    assert len(set(months)) == 14


def test_wall_clock_kept_across_dst():
    """Occurrences keep their local time when the offset changes."""
    ny_engine = RecurrenceEngine("America/New_York")
    base = datetime(2024, 3, 9, 9, 0, tzinfo=NEW_YORK)

    following = ny_engine.next_occurrence(Recurrence.daily(), base, just_after(base))

    assert following.hour == 9
    assert following.date() == datetime(2024, 3, 10).date()
    assert following.astimezone(UTC) - base.astimezone(UTC) == timedelta(hours=23)


def test_first_occurrence():
    """The anchor is used when it fits; otherwise the next match after it."""
    now = datetime(2024, 3, 13, 10, 0, 30, tzinfo=UTC)  # Wednesday

    later_today = datetime(2024, 3, 13, 11, 0, tzinfo=UTC)
    assert engine.first_occurrence(Recurrence.daily(), later_today, now) == later_today

    earlier_today = datetime(2024, 3, 13, 9, 0, tzinfo=UTC)
    assert engine.first_occurrence(Recurrence.daily(), earlier_today, now) == datetime(
        2024, 3, 14, 9, 0, tzinfo=UTC
    )

    assert engine.first_occurrence(Recurrence.monthly("last"), earlier_today, now) == datetime(
        2024, 3, 31, 9, 0, tzinfo=UTC
    )
    assert engine.first_occurrence(Recurrence.monthly("first"), earlier_today, now) == datetime(
        2024, 4, 1, 9, 0, tzinfo=UTC
    )


def test_decode():
    """Test pattern decoding and rejection of unknown patterns."""
    assert Recurrence.decode("daily").kind == RecurrenceKind.DAILY
    assert Recurrence.decode("WEEKDAY").kind == RecurrenceKind.WEEKDAY
    assert Recurrence.decode("weekly:sunday,monday").weekdays == (6, 0)
    assert Recurrence.decode("monthly:last").month_day == "last"

    for bad in ("yearly", "weekly:", "weekly:funday", "monthly:second", "daily:2"):
        with pytest.raises(UnsupportedRecurrenceError):
            Recurrence.decode(bad)


def test_unsupported_pattern_is_rejected():
    """Test that the engine refuses unsupported patterns."""
    base = datetime(2024, 3, 13, 9, 0, tzinfo=UTC)
    recurrence = Recurrence.unsupported("yearly")

    assert recurrence.kind is None
    assert recurrence.encode() == "yearly"
    with pytest.raises(UnsupportedRecurrenceError):
        engine.next_occurrence(recurrence, base, just_after(base))
    with pytest.raises(UnsupportedRecurrenceError):
        engine.first_occurrence(recurrence, base, just_after(base))
