from datetime import datetime
from typing import Iterable, List, Optional, Union

import pytest
import pytz

from calchat.agents.interpreter.workflow import CalendarInterpreter
from calchat.calendar.calendar_client import CalendarProviderError, InMemoryCalendarProvider
from calchat.calendar.dto import CalendarEvent
from calchat.calendar.store import MirroredEventStore
from calchat.db import persistence
from calchat.llm.gateway import GatewayError

USER_ID = "user-1"


class StubGateway:
    """
    Scripted stand-in for LanguageModelGateway.

    Replies are consumed in order; a reply that is an exception instance is
    raised instead of returned. Every prompt is recorded.
    """

    def __init__(self, replies: Optional[Iterable[Union[str, Exception]]] = None):
        self.replies: List[Union[str, Exception]] = list(replies or [])
        self.prompts: List[str] = []

    def queue(self, *replies: Union[str, Exception]):
        self.replies.extend(replies)

    async def generate(self, prompt: str, temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise GatewayError("no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def is_available(self) -> bool:
        return True


class FlakyProvider(InMemoryCalendarProvider):
    """In-memory provider whose deletes fail for chosen event ids."""

    def __init__(self, failing_ids=(), error=None, **kwargs):
        super().__init__(**kwargs)
        self.failing_ids = set(failing_ids)
        self.error = error
        self.attempted = []

    async def delete_event(self, provider_event_id: str):
        self.attempted.append(provider_event_id)
        if provider_event_id in self.failing_ids:
            raise self.error or CalendarProviderError(f"Deleting event {provider_event_id} failed: 500")
        return await super().delete_event(provider_event_id)


@pytest.fixture(autouse=True)
def clean_storage():
    persistence.reset_storage()
    yield
    persistence.reset_storage()


@pytest.fixture
def now():
    # Wednesday
    return pytz.UTC.localize(datetime(2024, 6, 12, 9, 0))


@pytest.fixture
def gateway():
    return StubGateway()


@pytest.fixture
def provider():
    return InMemoryCalendarProvider()


@pytest.fixture
def store(provider):
    return MirroredEventStore(provider, timezone="UTC")


@pytest.fixture
def interpreter(gateway, store):
    return CalendarInterpreter(gateway, store, timezone="UTC")


def make_event(title: str, start: datetime, provider_event_id: str, **fields) -> CalendarEvent:
    return CalendarEvent(provider_event_id=provider_event_id, title=title, start=start, **fields)


def google_event(event_id: str, summary: str, start_iso: str, **fields) -> dict:
    return {"id": event_id, "summary": summary, "start": {"dateTime": start_iso}, **fields}


def seed(store: MirroredEventStore, user_id: str, events: List[dict]) -> List[CalendarEvent]:
    """Create events through the provider and mirror them, as a sync would."""
    for event in events:
        store.provider._events[event["id"]] = dict(event)
    store.sync_events(user_id, events)
    return persistence.get_user_events(user_id)
