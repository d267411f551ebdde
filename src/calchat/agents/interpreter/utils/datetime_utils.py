"""
Interpreter Datetime Utilities

This module normalizes the date and time values a language model returns:
- resolve_relative_date: ISO dates, "today", "tomorrow", weekday names
- normalize_time: "19:00", "7 PM", "7:30pm", "noon" -> "HH:MM"
- localize: Combine a date and an "HH:MM" time in a timezone
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

WEEKDAYS = {
    "monday": 0, "mon": 0,
    "tuesday": 1, "tue": 1, "tues": 1,
    "wednesday": 2, "wed": 2,
    "thursday": 3, "thu": 3, "thur": 3, "thurs": 3,
    "friday": 4, "fri": 4,
    "saturday": 5, "sat": 5,
    "sunday": 6, "sun": 6,
}

DAY_ALIASES = {
    "today": 0,
    "tonight": 0,
    "tomorrow": 1,
    "day after tomorrow": 2,
    "yesterday": -1,
}

_TIME_RE = re.compile(r"^(\d{1,2})(?:[:.](\d{2}))?(?::\d{2})?\s*([ap])?\.?\s*(?:m\.?)?$")


def resolve_relative_date(value: Optional[str], today: date) -> Optional[date]:
    """
    Parse a model-supplied date.

    A bare weekday means its next occurrence on or after today; "next
    <weekday>" is always strictly after today.

    Args:
        value: "YYYY-MM-DD", a day alias or a weekday phrase
        today: Reference date in the user's timezone

    Returns:
        The resolved date, or None when the value is not understood
    """
    if not value:
        return None
    text = str(value).strip().lower()

    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass

    if text in DAY_ALIASES:
        return today + timedelta(days=DAY_ALIASES[text])

    strictly_after = False
    for prefix in ("next ", "this ", "on "):
        if text.startswith(prefix):
            strictly_after = prefix == "next "
            text = text[len(prefix):].strip()
            break

    if text in WEEKDAYS:
        days_ahead = (WEEKDAYS[text] - today.weekday()) % 7
        if strictly_after and days_ahead == 0:
            days_ahead = 7
        return today + timedelta(days=days_ahead)
    return None


def normalize_time(value: Optional[str]) -> Optional[str]:
    """
    Normalize a clock time to 24-hour "HH:MM".

    Returns:
        "HH:MM", or None when the value is missing or not a valid time
    """
    if value is None:
        return None
    text = str(value).strip().lower()
    if text in ("noon", "midday"):
        return "12:00"
    if text == "midnight":
        return "00:00"

    match = _TIME_RE.match(text)
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridiem = match.group(3)

    if meridiem:
        if not 1 <= hour <= 12:
            return None
        if meridiem == "p" and hour != 12:
            hour += 12
        elif meridiem == "a" and hour == 12:
            hour = 0
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def localize(day: date, hhmm: str, timezone: str) -> datetime:
    """Aware datetime for a local date and "HH:MM" time."""
    hour, minute = (int(part) for part in hhmm.split(":"))
    tz = pytz.timezone(timezone)
    return tz.localize(datetime.combine(day, time(hour, minute)))
