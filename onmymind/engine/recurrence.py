"""Next-occurrence computation for recurring reminders."""

from datetime import datetime, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from onmymind.db.models import Recurrence, RecurrenceKind, clamp_month_day
from onmymind.errors import UnsupportedRecurrenceError
from onmymind.utils.constants import DEFAULT_TIMEZONE, WORKDAYS

ONE_DAY = timedelta(days=1)


class RecurrenceEngine:
    """Computes due times for recurring reminders.

    Day stepping is done on wall-clock time in ``location``, so an
    occurrence keeps its hour and minute across DST changes.
    """

    def __init__(self, location: str | None = None):
        self.location = ZoneInfo(location or DEFAULT_TIMEZONE)

    def next_occurrence(
        self, recurrence: Recurrence, base: datetime, now: datetime
    ) -> datetime:
        """Get the first occurrence after ``base`` that is not before ``now``.

        ``base`` is the due time of the current occurrence; its hour and
        minute are the anchor for every later occurrence. Stepping repeats
        until the candidate catches up with ``now``, which covers any backlog
        left by scheduler downtime.

        Raises:
            UnsupportedRecurrenceError: if the pattern kind is unknown
        """
        base = self._anchor(base)

        if recurrence.kind == RecurrenceKind.MONTHLY:
            return self._next_month(recurrence, base, now, start=1)

        matches = self._day_matcher(recurrence)
        return self._step_days(base + ONE_DAY, now, matches)

    def first_occurrence(
        self, recurrence: Recurrence, anchor: datetime, now: datetime
    ) -> datetime:
        """Get the first due time of a new recurring reminder.

        The anchor itself is used when it is not in the past and fits the
        pattern; otherwise the first matching day (or month) after it.

        Raises:
            UnsupportedRecurrenceError: if the pattern kind is unknown
        """
        anchor = self._anchor(anchor)

        if recurrence.kind == RecurrenceKind.MONTHLY:
            return self._next_month(recurrence, anchor, now, start=0)

        matches = self._day_matcher(recurrence)
        return self._step_days(anchor, now, matches)

    # Helpers

    def _anchor(self, dt: datetime) -> datetime:
        return dt.astimezone(self.location).replace(second=0, microsecond=0)

    def _day_matcher(self, recurrence: Recurrence) -> Callable[[datetime], bool]:
        if recurrence.kind == RecurrenceKind.DAILY:
            return lambda dt: True
        if recurrence.kind == RecurrenceKind.WEEKDAY:
            return lambda dt: dt.weekday() in WORKDAYS
        if recurrence.kind == RecurrenceKind.WEEKLY:
            if not recurrence.weekdays:
                raise UnsupportedRecurrenceError(
                    f"weekly pattern without days: {recurrence.raw}"
                )
            days = frozenset(recurrence.weekdays)
            return lambda dt: dt.weekday() in days

        raise UnsupportedRecurrenceError(
            f"unsupported recurrence pattern: {recurrence.raw}"
        )

    @staticmethod
    def _step_days(
        candidate: datetime, now: datetime, matches: Callable[[datetime], bool]
    ) -> datetime:
        while candidate < now or not matches(candidate):
            candidate += ONE_DAY
        return candidate

    def _next_month(
        self, recurrence: Recurrence, base: datetime, now: datetime, start: int
    ) -> datetime:
        pin = self._month_pin(recurrence)

        months = start
        candidate = base + relativedelta(months=months, **pin)
        # A pinned day can fall before the anchor within the anchor's own month
        while candidate < now or candidate < base:
            months += 1
            candidate = base + relativedelta(months=months, **pin)
        return candidate

    @staticmethod
    def _month_pin(recurrence: Recurrence) -> dict:
        day = recurrence.month_day
        if day == "first":
            return {"day": 1}
        if day == "last":
            # relativedelta clamps day=31 to the month's last day
            return {"day": 31}
        if isinstance(day, int):
            return {"day": clamp_month_day(day)}

        raise UnsupportedRecurrenceError(
            f"unsupported monthly pattern: {recurrence.raw}"
        )
