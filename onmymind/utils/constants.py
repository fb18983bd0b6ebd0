"""Constants and default values."""

# Weekday names in Python weekday() order (Monday=0)
WEEKDAY_NAMES = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

# Monday-Friday
WORKDAYS = frozenset({0, 1, 2, 3, 4})

# Day-of-month specifiers are clamped so every month has that day
MIN_MONTH_DAY = 1
MAX_MONTH_DAY = 28

# Command syntax
PRIORITY_MARKER = "-call"
RECURRENCE_KEYWORD = "every"

# Scheduler defaults (seconds)
DEFAULT_TICK_INTERVAL = 60
DEFAULT_ESCALATION_DELAY = 120

# Length of the id prefix shown in listings
SHORT_ID_LENGTH = 8

# Default timezone
DEFAULT_TIMEZONE = "UTC"
