"""Natural language time and recurrence parsing for /remindme."""

from datetime import datetime, time, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from onmymind.db.models import ParsedReminder, Recurrence
from onmymind.errors import (
    FormatError,
    InvalidScheduleError,
    RecurrenceMisuseError,
    TimeFormatError,
)
from onmymind.parser.patterns import (
    AT_PATTERN,
    DAILY_WORDS,
    DATETIME_FORMATS,
    MONTHLY_PATTERN,
    PRIORITY_PATTERN,
    RECURRENCE_PREFIX_PATTERN,
    RECURRING_SEPARATOR_PATTERN,
    RELATIVE_PATTERN,
    SEPARATOR_PATTERN,
    TIME_OF_DAY_FORMATS,
    TOMORROW_PATTERN,
    WEEKDAY_SEPARATOR_PATTERN,
    WEEKDAY_WORDS,
)
from onmymind.utils.constants import DEFAULT_TIMEZONE, RECURRENCE_KEYWORD, WEEKDAY_NAMES
from onmymind.utils.time_utils import to_utc

# Minutes and hours are elapsed time; days and longer keep the wall-clock time
ELAPSED_UNITS = {
    'minute': lambda n: timedelta(minutes=n),
    'hour': lambda n: timedelta(hours=n),
}
CALENDAR_UNITS = {
    'day': lambda n: relativedelta(days=n),
    'week': lambda n: relativedelta(weeks=n),
    'month': lambda n: relativedelta(months=n),
}


def strip_priority(text: str) -> tuple[str, bool]:
    """Remove a trailing priority marker.

    Returns:
        Tuple of (remaining text, whether the marker was present)
    """
    text = text.strip()
    stripped = PRIORITY_PATTERN.sub('', text)
    return stripped, stripped != text


def is_recurring(text: str) -> bool:
    """Whether a command argument string describes a recurring reminder."""
    return text.strip().lower().startswith(RECURRENCE_KEYWORD)


class TimeExpressionParser:
    """Turns /remindme arguments into due times and recurrence patterns.

    All "today"/"tomorrow" decisions and anchors use ``location``.
    """

    def __init__(
        self,
        location: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.location = ZoneInfo(location or DEFAULT_TIMEZONE)
        self._clock = clock

    def now(self) -> datetime:
        now = self._clock() if self._clock else datetime.now(self.location)
        return now.astimezone(self.location)

    # One-time reminders

    def parse_command(self, text: str) -> ParsedReminder:
        """Parse "<time> to|that <message> [-call]".

        Raises:
            FormatError: if no separator is present or the message is empty
            TimeFormatError: if the time expression is not recognized
            RecurrenceMisuseError: if the time expression starts with "every"
        """
        text, is_priority = strip_priority(text)

        parts = SEPARATOR_PATTERN.split(text, maxsplit=1)
        if len(parts) != 2:
            raise FormatError("invalid format: use '/remindme <time> to <message>'")

        time_str = parts[0].strip()
        title = parts[1].strip()
        if not title:
            raise FormatError("reminder message is empty")

        due_time = self.parse_time_expression(time_str)

        return ParsedReminder(title=title, due_time=due_time, is_priority=is_priority)

    def parse_time_expression(self, text: str) -> datetime:
        """Resolve a one-time expression to an aware datetime.

        Tried in order: relative ("in 2 hours"), "tomorrow at <time>",
        then the absolute formats.
        """
        text = text.strip().lower()

        if text.startswith(RECURRENCE_KEYWORD):
            raise RecurrenceMisuseError(
                "recurring reminders should be handled separately"
            )

        match = RELATIVE_PATTERN.match(text)
        if match:
            amount = int(match.group(1))
            unit = match.group(2).lower()
            now = self.now()
            try:
                if unit in ELAPSED_UNITS:
                    return (to_utc(now) + ELAPSED_UNITS[unit](amount)).astimezone(self.location)
                return now + CALENDAR_UNITS[unit](amount)
            except (OverflowError, ValueError):
                raise TimeFormatError("time is out of range")

        match = TOMORROW_PATTERN.match(text)
        if match:
            tod = self.parse_time_of_day(match.group(1))
            tomorrow = self.now().date() + timedelta(days=1)
            return datetime.combine(tomorrow, tod, tzinfo=self.location)

        return self._parse_absolute(text)

    def parse_time_of_day(self, text: str) -> time:
        """Parse "15:04", "3:04pm", "3:04 pm", "3pm" or "3 pm".

        Raises:
            TimeFormatError: if none of the formats match
        """
        text = text.strip().lower()
        for fmt in TIME_OF_DAY_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
            except ValueError:
                continue
            return time(parsed.hour, parsed.minute)

        raise TimeFormatError(f"invalid time format: {text}")

    def _parse_absolute(self, text: str) -> datetime:
        for fmt in DATETIME_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
            except ValueError:
                continue
            return parsed.replace(tzinfo=self.location)

        try:
            tod = self.parse_time_of_day(text)
        except TimeFormatError:
            raise TimeFormatError(f"unsupported time format: {text}")

        return datetime.combine(self.now().date(), tod, tzinfo=self.location)

    # Recurring reminders

    def parse_recurrence_pattern(self, text: str) -> tuple[Recurrence, datetime]:
        """Parse "every <schedule> at <time>".

        Returns:
            Tuple of (recurrence, anchor) where the anchor is today's date at
            the parsed time of day.

        Raises:
            FormatError: if "every" or the "at <time>" part is missing
            TimeFormatError: if the time of day is not recognized
            InvalidScheduleError: if the schedule is not recognized
        """
        text = text.strip().lower()
        if not RECURRENCE_PREFIX_PATTERN.match(text):
            raise FormatError("recurrence pattern must start with 'every'")

        pattern = RECURRENCE_PREFIX_PATTERN.sub('', text, count=1)
        parts = AT_PATTERN.split(pattern)
        if len(parts) != 2:
            raise FormatError("invalid format: must include time with 'at'")

        schedule, time_str = parts
        tod = self.parse_time_of_day(time_str)
        recurrence = self.parse_schedule(schedule)

        anchor = datetime.combine(self.now().date(), tod, tzinfo=self.location)
        return recurrence, anchor

    def parse_schedule(self, schedule: str) -> Recurrence:
        """Normalize a schedule ("day", "weekday", "month on the last",
        "monday and friday") into a Recurrence.

        Raises:
            InvalidScheduleError: if the schedule is not recognized
        """
        schedule = schedule.strip().lower()

        if schedule in DAILY_WORDS:
            return Recurrence.daily()

        if schedule in WEEKDAY_WORDS:
            return Recurrence.weekday()

        if schedule.startswith('month'):
            match = MONTHLY_PATTERN.match(schedule)
            if not match:
                raise InvalidScheduleError("invalid monthly schedule format")
            day = match.group(1)
            if day in ('first', 'last'):
                return Recurrence.monthly(day)  # type: ignore[arg-type]
            return Recurrence.monthly(int(day.rstrip('stndrh')))

        names = [name for name in WEEKDAY_SEPARATOR_PATTERN.split(schedule) if name]
        if not names:
            raise InvalidScheduleError("invalid schedule format")

        weekdays = []
        for name in names:
            if name not in WEEKDAY_NAMES:
                raise InvalidScheduleError(f"invalid day: {name}")
            weekdays.append(WEEKDAY_NAMES[name])

        return Recurrence.weekly(weekdays)

    def parse_recurring_command(self, text: str) -> ParsedReminder:
        """Parse "every <schedule> at <time> to <message> [-call]".

        The returned reminder carries the recurrence and its anchor; the
        first due time is left for the recurrence engine to decide.
        """
        text, is_priority = strip_priority(text)

        parts = RECURRING_SEPARATOR_PATTERN.split(text, maxsplit=1)
        if len(parts) != 2:
            raise FormatError(
                "invalid format: use 'every <schedule> at <time> to <message>'"
            )

        pattern, title = parts[0].strip(), parts[1].strip()
        if not title:
            raise FormatError("reminder message is empty")

        recurrence, anchor = self.parse_recurrence_pattern(pattern)

        return ParsedReminder(
            title=title,
            is_priority=is_priority,
            recurrence=recurrence,
            anchor=anchor,
        )
