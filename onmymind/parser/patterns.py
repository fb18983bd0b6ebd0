"""Regex patterns for reminder command parsing."""

import re

from onmymind.utils.constants import PRIORITY_MARKER

# Trailing "-call" marks a priority reminder
PRIORITY_PATTERN = re.compile(r"\s*" + re.escape(PRIORITY_MARKER) + r"\s*$", re.IGNORECASE)

# Separates the time expression from the reminder message
SEPARATOR_PATTERN = re.compile(r'\s+(?:to|that)\s+', re.IGNORECASE)

# Separates a recurring schedule from its message (only "to")
RECURRING_SEPARATOR_PATTERN = re.compile(r'\s+to\s+', re.IGNORECASE)

# Relative dates: "in 2 hours", "in 1 week"
RELATIVE_PATTERN = re.compile(
    r'^in\s+(\d+)\s+(minute|hour|day|week|month)s?$', re.IGNORECASE
)

# "tomorrow at 3pm", "tomorrow 15:00"
TOMORROW_PATTERN = re.compile(r'^tomorrow(?:\s+at)?\s*(.*)$', re.IGNORECASE)

# Recurrence
RECURRENCE_PREFIX_PATTERN = re.compile(r'^every\b\s*', re.IGNORECASE)
AT_PATTERN = re.compile(r'\s+at\s+', re.IGNORECASE)
MONTHLY_PATTERN = re.compile(
    r'^month\s+on\s+the\s+(first|last|\d{1,2}(?:st|nd|rd|th)?)$', re.IGNORECASE
)
WEEKDAY_SEPARATOR_PATTERN = re.compile(r'\s*(?:,|\band\b)\s*', re.IGNORECASE)

DAILY_WORDS = {'day', 'daily'}
WEEKDAY_WORDS = {'weekday', 'weekdays'}

# Absolute formats, tried in order. Time-only formats take today's date.
DATETIME_FORMATS = [
    '%Y-%m-%d %H:%M',
]

TIME_OF_DAY_FORMATS = [
    '%H:%M',
    '%I:%M%p',
    '%I:%M %p',
    '%I%p',
    '%I %p',
]
