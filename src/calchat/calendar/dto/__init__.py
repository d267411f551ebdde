"""
Calendar Data Models

Read projection of the user's events plus the search predicate the
event store evaluates against its local mirror.
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

import pytz
from pydantic import BaseModel


class Timeframe(str, Enum):
    PAST = "past"
    FUTURE = "future"
    SPECIFIC_DATE = "specific_date"
    NONE = "none"


class DeleteOutcome(str, Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"


class CalendarEvent(BaseModel):
    """Calendar event as mirrored from the provider."""
    id: str = ""
    provider_event_id: str
    title: str
    description: Optional[str] = None
    start: datetime
    end: Optional[datetime] = None
    location: Optional[str] = None
    attendees: List[str] = []
    recurrence: Optional[str] = None
    is_all_day: bool = False


class EventQuery(BaseModel):
    """
    Search predicate over a user's events.

    Terms are OR-matched (case-insensitive substring) against title,
    description and location. The timeframe narrows by start time
    relative to `now` and decides the ordering.
    """
    terms: List[str] = []
    timeframe: Timeframe = Timeframe.NONE
    on_date: Optional[date] = None
    now: datetime
    timezone: str = "UTC"
    limit: int = 100

    def matches(self, event: CalendarEvent) -> bool:
        if self.terms:
            fields = [
                (event.title or "").lower(),
                (event.description or "").lower(),
                (event.location or "").lower(),
            ]
            terms = [term.lower() for term in self.terms]
            if not any(term in field for term in terms for field in fields):
                return False

        if self.timeframe == Timeframe.PAST:
            return event.start <= self.now
        if self.timeframe == Timeframe.FUTURE:
            return event.start >= self.now
        if self.timeframe == Timeframe.SPECIFIC_DATE and self.on_date:
            tz = pytz.timezone(self.timezone)
            return event.start.astimezone(tz).date() == self.on_date
        return True

    def apply(self, events: List[CalendarEvent]) -> List[CalendarEvent]:
        """Filter, order and cap a list of events."""
        matched = [event for event in events if self.matches(event)]
        ascending = self.timeframe == Timeframe.FUTURE or (
            self.timeframe == Timeframe.SPECIFIC_DATE and self.on_date is not None
        )
        matched.sort(key=lambda event: event.start, reverse=not ascending)
        return matched[: self.limit]
