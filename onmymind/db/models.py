"""Data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal

from onmymind.errors import UnsupportedRecurrenceError
from onmymind.utils.constants import MAX_MONTH_DAY, MIN_MONTH_DAY, SHORT_ID_LENGTH, WEEKDAY_NAMES


class ReminderStatus(str, Enum):
    """Lifecycle state of a reminder. Pending is the only non-terminal state."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class NotificationType(str, Enum):
    MESSAGE = "telegram_message"
    CALL = "telegram_call"


class NotificationStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class RecurrenceKind(str, Enum):
    DAILY = "daily"
    WEEKDAY = "weekday"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


MonthDay = Literal["first", "last"] | int

_WEEKDAY_BY_NUMBER = {number: name for name, number in WEEKDAY_NAMES.items()}


def clamp_month_day(day: int) -> int:
    """Clamp a day-of-month to a day that exists in every month."""
    return max(MIN_MONTH_DAY, min(MAX_MONTH_DAY, day))


@dataclass(frozen=True)
class Recurrence:
    """A decoded recurrence pattern.

    Stored as a flat string (``daily``, ``weekday``, ``weekly:sunday,monday``,
    ``monthly:first``, ``monthly:last``, ``monthly:15``) and decoded once when a
    row is loaded. ``kind`` is None only for a stored pattern that could not be
    decoded; the recurrence engine refuses to schedule those.
    """

    kind: RecurrenceKind | None
    weekdays: tuple[int, ...] = ()
    month_day: MonthDay | None = None
    raw: str = ""

    @classmethod
    def daily(cls) -> "Recurrence":
        return cls(RecurrenceKind.DAILY, raw="daily")

    @classmethod
    def weekday(cls) -> "Recurrence":
        return cls(RecurrenceKind.WEEKDAY, raw="weekday")

    @classmethod
    def weekly(cls, weekdays: list[int]) -> "Recurrence":
        days = tuple(weekdays)
        raw = "weekly:" + ",".join(_WEEKDAY_BY_NUMBER[d] for d in days)
        return cls(RecurrenceKind.WEEKLY, weekdays=days, raw=raw)

    @classmethod
    def monthly(cls, month_day: MonthDay) -> "Recurrence":
        if not isinstance(month_day, str):
            month_day = clamp_month_day(month_day)
        return cls(RecurrenceKind.MONTHLY, month_day=month_day, raw=f"monthly:{month_day}")

    @classmethod
    def decode(cls, text: str) -> "Recurrence":
        """Decode the storage form of a pattern.

        Raises:
            UnsupportedRecurrenceError: if the kind or its parameters are unknown
        """
        kind, _, params = text.strip().lower().partition(":")

        if kind == RecurrenceKind.DAILY.value and not params:
            return cls.daily()
        if kind == RecurrenceKind.WEEKDAY.value and not params:
            return cls.weekday()

        if kind == RecurrenceKind.WEEKLY.value:
            names = [name.strip() for name in params.split(",") if name.strip()]
            if not names or any(name not in WEEKDAY_NAMES for name in names):
                raise UnsupportedRecurrenceError(f"Invalid weekly pattern: {text}")
            return cls.weekly([WEEKDAY_NAMES[name] for name in names])

        if kind == RecurrenceKind.MONTHLY.value:
            if params in ("first", "last"):
                return cls.monthly(params)  # type: ignore[arg-type]
            digits = params.rstrip("stndrh")
            if digits.isdigit():
                return cls.monthly(int(digits))
            raise UnsupportedRecurrenceError(f"Invalid monthly pattern: {text}")

        raise UnsupportedRecurrenceError(f"Unsupported recurrence pattern: {text}")

    @classmethod
    def unsupported(cls, text: str) -> "Recurrence":
        """Placeholder for a stored pattern that failed to decode."""
        return cls(None, raw=text)

    def encode(self) -> str:
        return self.raw


@dataclass
class Reminder:
    """A single occurrence of a (possibly recurring) reminder."""

    user_id: str
    title: str
    due_time: datetime | None  # timezone-aware
    description: str = ""
    recurrence: Recurrence | None = None
    priority: bool = False
    status: ReminderStatus = ReminderStatus.PENDING
    created_at: datetime | None = None
    updated_at: datetime | None = None
    id: str | None = None

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None

    @property
    def short_id(self) -> str:
        return (self.id or "")[:SHORT_ID_LENGTH]


@dataclass
class NotificationLog:
    """Audit trail of a notification attempt. Append-only."""

    reminder_id: str
    notification_type: NotificationType
    status: NotificationStatus
    error_message: str = ""
    attempted_at: datetime | None = None
    id: str | None = None


@dataclass
class ListFilter:
    """Optional filters for listing reminders. Time bounds are inclusive."""

    status: ReminderStatus | None = None
    priority: bool | None = None
    from_time: datetime | None = None
    to_time: datetime | None = None


@dataclass
class ParsedReminder:
    """Result from parsing a /remindme command."""

    title: str
    due_time: datetime | None = None
    is_priority: bool = False
    recurrence: Recurrence | None = None
    anchor: datetime | None = None  # time-of-day anchor for recurring reminders


@dataclass
class Item:
    """A stored note."""

    text: str
    created_at: datetime
    id: int | None = None


@dataclass
class DeletedItem:
    """A note moved out of the active list."""

    text: str
    deleted_at: datetime
    id: int | None = None


@dataclass
class Backup:
    """Exported snapshot of the note store."""

    items: list[Item] = field(default_factory=list)
    deleted_items: list[DeletedItem] = field(default_factory=list)
    exported_at: datetime | None = None


@dataclass
class ImportResult:
    """Counts reported after importing a backup."""

    imported: int = 0
    skipped: int = 0
    imported_deleted: int = 0
    skipped_deleted: int = 0
