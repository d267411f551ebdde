from datetime import date, datetime, timedelta

import pytest
import pytz

from calchat.agents.interpreter.dto import Confidence, Intent, IntentType
from calchat.agents.interpreter.services.matcher import (
    describe_event,
    expand_keywords,
    parse_selection,
    search_events,
    select_deletion_targets,
)
from calchat.calendar.dto import EventQuery, Timeframe
from calchat.llm.gateway import GatewayError
from conftest import USER_ID, StubGateway, google_event, make_event, seed


def test_expand_keywords_adds_synonym_group():
    assert expand_keywords(["focus"]) == ["focus", "focus time", "studying", "study", "🎯"]
    assert expand_keywords(["Gym"]) == ["gym", "workout", "exercise", "training"]


def test_expand_keywords_leaves_unknown_terms_alone():
    assert expand_keywords(["John", "john", " "]) == ["john"]


def test_expand_keywords_custom_table():
    assert expand_keywords(["pto"], synonyms=[("pto", "vacation")]) == ["pto", "vacation"]


def test_query_matches_any_field_case_insensitively(now):
    event = make_event("Sync", now, "e1", location="Room FOCUS")
    assert EventQuery(terms=["focus"], now=now).matches(event)
    assert not EventQuery(terms=["gym"], now=now).matches(event)


def test_query_orders_past_newest_first_and_future_soonest_first(now):
    events = [
        make_event("a", now - timedelta(days=3), "a"),
        make_event("b", now - timedelta(days=1), "b"),
        make_event("c", now + timedelta(days=1), "c"),
        make_event("d", now + timedelta(days=3), "d"),
    ]
    past = EventQuery(timeframe=Timeframe.PAST, now=now).apply(events)
    future = EventQuery(timeframe=Timeframe.FUTURE, now=now).apply(events)
    assert [e.title for e in past] == ["b", "a"]
    assert [e.title for e in future] == ["c", "d"]


def test_query_specific_date_uses_local_day(now):
    late = make_event("late", pytz.UTC.localize(datetime(2024, 6, 13, 3)), "late")
    query = EventQuery(
        timeframe=Timeframe.SPECIFIC_DATE,
        on_date=date(2024, 6, 12),
        now=now,
        timezone="America/New_York",
    )
    assert query.matches(late)


def test_query_limit(now):
    events = [make_event(f"e{i}", now + timedelta(hours=i), f"e{i}") for i in range(5)]
    assert len(EventQuery(now=now, limit=2).apply(events)) == 2


@pytest.mark.asyncio
async def test_search_events_uses_synonyms(store, now):
    seed(store, USER_ID, [
        google_event("e1", "Studying for exams", "2024-06-13T10:00:00Z"),
        google_event("e2", "Focus time", "2024-06-14T10:00:00Z"),
        google_event("e3", "Dentist", "2024-06-15T10:00:00Z"),
    ])
    intent = Intent(type=IntentType.QUERY_EVENTS, keywords=("focus",), timeframe=Timeframe.FUTURE)

    events = await search_events(store, USER_ID, intent, now)

    assert [e.title for e in events] == ["Studying for exams", "Focus time"]


def test_describe_event(now):
    event = make_event("Dinner", pytz.UTC.localize(datetime(2024, 6, 14, 19)), "e1", location="Luigi's")
    assert describe_event(event) == "Dinner on 2024-06-14 at 19:00 (Luigi's)"


def test_parse_selection(now):
    candidates = [make_event(f"e{i}", now, f"e{i}") for i in range(3)]

    match = parse_selection('{"indices": [2, "3", 9, 2, "x"], "confidence": "high"}', candidates)

    assert [e.title for e in match.events] == ["e1", "e2"]
    assert match.confidence == Confidence.HIGH


@pytest.mark.parametrize("reply", ["nothing", '{"indices": []}', '{"indices": "1"}', '{"indices": [0, 4]}'])
def test_parse_selection_unusable_selects_nothing(now, reply):
    candidates = [make_event(f"e{i}", now, f"e{i}") for i in range(3)]
    assert parse_selection(reply, candidates).events == []


def test_parse_selection_unknown_confidence_is_medium(now):
    candidates = [make_event("e0", now, "e0")]
    assert parse_selection('{"indices": [1], "confidence": "very"}', candidates).confidence == Confidence.MEDIUM


@pytest.mark.asyncio
async def test_select_targets_without_keywords_takes_all(now):
    gateway = StubGateway()
    candidates = [make_event(f"e{i}", now, f"e{i}") for i in range(3)]

    match = await select_deletion_targets("clear my calendar", Intent(type=IntentType.DELETE_EVENT), candidates, gateway)

    assert match.events == candidates
    assert match.confidence == Confidence.HIGH
    assert gateway.prompts == []


@pytest.mark.asyncio
async def test_select_targets_lists_numbered_candidates(now):
    gateway = StubGateway(['{"indices": [1], "confidence": "high"}'])
    candidates = [make_event("Dentist", now, "e1"), make_event("Dentist follow-up", now, "e2")]
    intent = Intent(type=IntentType.DELETE_EVENT, keywords=("dentist",))

    match = await select_deletion_targets("delete my dentist appointment", intent, candidates, gateway)

    assert [e.provider_event_id for e in match.events] == ["e1"]
    assert "1. Dentist on" in gateway.prompts[0]
    assert "2. Dentist follow-up on" in gateway.prompts[0]
    assert "most likely means a single event" in gateway.prompts[0]


@pytest.mark.asyncio
async def test_select_targets_gateway_failure_selects_nothing(now):
    gateway = StubGateway([GatewayError("down")])
    intent = Intent(type=IntentType.DELETE_EVENT, keywords=("dentist",))

    match = await select_deletion_targets("delete dentist", intent, [make_event("Dentist", now, "e1")], gateway)

    assert match.events == []
