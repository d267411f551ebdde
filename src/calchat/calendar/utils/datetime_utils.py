"""
Calendar Datetime Utilities

This module provides conversions between provider payloads and the
CalendarEvent projection:
- parse_google_calendar_datetime: Parse a Google `start`/`end` object
- to_utc_iso: Convert any datetime to a UTC ISO string for API calls
- google_event_to_calendar_event: Build a CalendarEvent from a Google event
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

import pytz

from calchat.calendar.dto import CalendarEvent

logger = logging.getLogger(__name__)


def parse_google_calendar_datetime(
    date_dict: Optional[Dict[str, Any]],
    timezone: str = "UTC",
) -> Tuple[Optional[datetime], bool]:
    """
    Parse Google Calendar datetime format.

    Args:
        date_dict: Google Calendar date/datetime dict
        timezone: Timezone used to anchor all-day dates and naive datetimes

    Returns:
        (aware datetime or None, is_all_day)
    """
    if not date_dict:
        return None, False

    tz = pytz.timezone(timezone)
    try:
        if date_dict.get("dateTime"):
            dt = datetime.fromisoformat(date_dict["dateTime"].replace("Z", "+00:00"))
            if dt.tzinfo is None:
                dt = tz.localize(dt)
            return dt, False
        if date_dict.get("date"):
            # All-day events carry a bare date
            dt = datetime.strptime(date_dict["date"], "%Y-%m-%d")
            return tz.localize(dt), True
    except (ValueError, TypeError) as e:
        logger.warning(f"Unparsable calendar datetime {date_dict}: {str(e)}")
    return None, False


def to_utc_iso(dt: datetime) -> str:
    """Convert a datetime to UTC ISO format, treating naive values as UTC."""
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC).isoformat().replace("+00:00", "Z")


def google_event_to_calendar_event(
    google_event: Dict[str, Any],
    timezone: str = "UTC",
) -> CalendarEvent:
    """
    Convert a Google Calendar event to a CalendarEvent.

    Raises:
        ValueError: If the event has no usable start time
    """
    start, is_all_day = parse_google_calendar_datetime(google_event.get("start"), timezone)
    end, _ = parse_google_calendar_datetime(google_event.get("end"), timezone)
    if start is None:
        raise ValueError(f"Event {google_event.get('id')} has no start time")

    attendees = []
    for attendee in google_event.get("attendees") or []:
        email = attendee.get("email") if isinstance(attendee, dict) else attendee
        if email:
            attendees.append(email)

    recurrence = google_event.get("recurrence") or []
    if isinstance(recurrence, str):
        recurrence = [recurrence]

    return CalendarEvent(
        provider_event_id=google_event.get("id", ""),
        title=google_event.get("summary") or "No Title",
        description=google_event.get("description") or None,
        start=start,
        end=end,
        location=google_event.get("location") or None,
        attendees=attendees,
        recurrence=",".join(recurrence) or None,
        is_all_day=is_all_day,
    )
