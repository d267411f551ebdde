"""
Event Store Accessor

Read access goes to the user's local event mirror; mutations go to the
upstream provider first and are mirrored only after it acknowledges them.
Mirror maintenance is best-effort: failures are logged, never surfaced.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from calchat.calendar.calendar_client import (
    CalendarProviderError,
    GoogleCalendarClient,
    InMemoryCalendarProvider,
)
from calchat.calendar.constants import CALENDAR_SETTINGS
from calchat.calendar.dto import CalendarEvent, DeleteOutcome, EventQuery
from calchat.calendar.utils.datetime_utils import google_event_to_calendar_event
from calchat.db import persistence

logger = logging.getLogger(__name__)


class EventStoreError(Exception):
    """Raised when the event store could not complete a read or mutation."""


class EventStore(ABC):
    """Contract the interpreter relies on for calendar data."""

    @abstractmethod
    async def search(self, user_id: str, query: EventQuery) -> List[CalendarEvent]:
        ...

    @abstractmethod
    async def create(self, user_id: str, payload: Dict[str, Any]) -> CalendarEvent:
        ...

    @abstractmethod
    async def delete(self, user_id: str, provider_event_id: str) -> DeleteOutcome:
        ...

    @abstractmethod
    async def persist_mirror(self, user_id: str, event: CalendarEvent) -> Optional[CalendarEvent]:
        ...

    @abstractmethod
    async def remove_mirror(self, user_id: str, event_id: str) -> None:
        ...


class MirroredEventStore(EventStore):
    """
    Event store backed by a calendar provider and the in-memory mirror.

    Args:
        provider: Object exposing async list_events / insert_event / delete_event
        timezone: Timezone used to anchor all-day events
    """

    def __init__(self, provider, timezone: str = CALENDAR_SETTINGS.TIMEZONE):
        self.provider = provider
        self.timezone = timezone

    async def search(self, user_id: str, query: EventQuery) -> List[CalendarEvent]:
        try:
            events = persistence.get_user_events(user_id)
        except Exception as e:
            raise EventStoreError(f"Reading events for {user_id} failed: {str(e)}") from e
        return query.apply(events)

    async def create(self, user_id: str, payload: Dict[str, Any]) -> CalendarEvent:
        try:
            stored = await self.provider.insert_event(payload)
        except CalendarProviderError as e:
            raise EventStoreError(str(e)) from e
        except Exception as e:
            raise EventStoreError(f"Creating event failed: {e!r}") from e

        try:
            return google_event_to_calendar_event(stored, self.timezone)
        except ValueError as e:
            raise EventStoreError(f"Provider returned an unusable event: {str(e)}") from e

    async def delete(self, user_id: str, provider_event_id: str) -> DeleteOutcome:
        try:
            outcome = await self.provider.delete_event(provider_event_id)
        except CalendarProviderError as e:
            raise EventStoreError(str(e)) from e
        except Exception as e:
            raise EventStoreError(f"Deleting event {provider_event_id} failed: {e!r}") from e
        if outcome == DeleteOutcome.NOT_FOUND:
            logger.info(f"Event {provider_event_id} was already gone upstream")
        return outcome

    async def persist_mirror(self, user_id: str, event: CalendarEvent) -> Optional[CalendarEvent]:
        try:
            return persistence.upsert_event(user_id, event)
        except Exception as e:
            logger.error(f"Failed to mirror event {event.provider_event_id} for {user_id}: {str(e)}")
            return None

    async def remove_mirror(self, user_id: str, event_id: str) -> None:
        try:
            if not persistence.remove_event(user_id, event_id):
                logger.warning(f"Mirror had no event {event_id} for {user_id}")
        except Exception as e:
            logger.error(f"Failed to remove mirrored event {event_id} for {user_id}: {str(e)}")

    def sync_events(self, user_id: str, google_events: List[Dict[str, Any]]) -> int:
        """
        Replace a user's mirror with events pushed by the client.

        Events without a usable start time are skipped.

        Returns:
            Number of events mirrored
        """
        events = []
        for google_event in google_events:
            try:
                events.append(google_event_to_calendar_event(google_event, self.timezone))
            except ValueError as e:
                logger.warning(f"Skipping event during sync: {str(e)}")
        count = persistence.replace_user_events(user_id, events)
        logger.info(f"Synced {count} events for user {user_id}")
        return count

    async def refresh_from_provider(self, user_id: str, now: datetime) -> int:
        """Pull one year back and forward from the provider into the mirror."""
        window = timedelta(days=CALENDAR_SETTINGS.SYNC_WINDOW_DAYS)
        try:
            google_events = await self.provider.list_events(now - window, now + window)
        except CalendarProviderError as e:
            raise EventStoreError(str(e)) from e
        except Exception as e:
            raise EventStoreError(f"Listing events failed: {e!r}") from e
        return self.sync_events(user_id, google_events)


def build_event_store(backend: str = CALENDAR_SETTINGS.DEFAULT_CALENDAR_SERVICE) -> MirroredEventStore:
    """Build the configured event store."""
    if backend == "google":
        return MirroredEventStore(GoogleCalendarClient())
    return MirroredEventStore(InMemoryCalendarProvider(timezone=CALENDAR_SETTINGS.TIMEZONE))
