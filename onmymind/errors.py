"""Error types surfaced by the parser, service and scheduler."""


class OnMyMindError(Exception):
    """Base class for all application errors."""


class ValidationError(OnMyMindError):
    """A reminder failed validation (empty title, missing or past due time)."""


class FormatError(OnMyMindError):
    """User input does not have the expected command shape."""


class TimeFormatError(FormatError):
    """A time expression matched none of the accepted formats."""


class RecurrenceMisuseError(FormatError):
    """A recurring expression was passed where a one-time time was expected."""


class InvalidScheduleError(FormatError):
    """A recurrence schedule could not be recognized."""


class UnsupportedRecurrenceError(OnMyMindError):
    """A stored recurrence pattern has an unknown kind."""


class NotFoundError(OnMyMindError):
    """The requested record does not exist."""


class InvalidRecipientError(OnMyMindError):
    """A user id cannot be turned into a chat id."""


class DeliveryError(OnMyMindError):
    """The chat transport failed to deliver a notification."""
