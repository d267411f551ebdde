"""
Event Search & Matcher

Search expands keywords through a small synonym table and evaluates an
EventQuery against the event store. For deletions the model additionally
narrows the candidates to the ones the user means; unusable model output
selects nothing, so nothing is deleted on a guess.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, List, Sequence

import pytz

from calchat.agents.interpreter.constants import INTERPRETER_SETTINGS, KEYWORD_SYNONYMS
from calchat.agents.interpreter.dto import Confidence, DeletionMatch, Intent
from calchat.agents.interpreter.prompts import DELETION_SELECTION_PROMPT
from calchat.agents.interpreter.utils.helper import extract_json_object
from calchat.calendar.dto import CalendarEvent, EventQuery, Timeframe
from calchat.calendar.store import EventStore
from calchat.llm.gateway import GatewayError, LanguageModelGateway

logger = logging.getLogger(__name__)


def expand_keywords(
    keywords: Iterable[str],
    synonyms: Sequence[Sequence[str]] = KEYWORD_SYNONYMS,
) -> List[str]:
    """
    Expand keywords with every member of the synonym groups they belong to.

    Returns:
        Lowercased terms, original keywords first, without duplicates
    """
    terms: List[str] = []

    def add(term: str):
        term = term.strip().lower()
        if term and term not in terms:
            terms.append(term)

    for keyword in keywords:
        add(keyword)
    for keyword in list(terms):
        for group in synonyms:
            if keyword in (member.lower() for member in group):
                for member in group:
                    add(member)
    return terms


def build_event_query(
    intent: Intent,
    now: datetime,
    timezone: str = "UTC",
    limit: int = INTERPRETER_SETTINGS.SEARCH_LIMIT,
) -> EventQuery:
    return EventQuery(
        terms=expand_keywords(intent.keywords),
        timeframe=intent.timeframe,
        on_date=intent.date_mentioned,
        now=now,
        timezone=timezone,
        limit=limit,
    )


async def search_events(
    store: EventStore,
    user_id: str,
    intent: Intent,
    now: datetime,
    timezone: str = "UTC",
) -> List[CalendarEvent]:
    """
    Retrieve candidate events for an intent.

    Raises:
        EventStoreError: If the store cannot be read
    """
    query = build_event_query(intent, now, timezone)
    events = await store.search(user_id, query)
    logger.info(f"Search for {user_id} terms={query.terms} timeframe={query.timeframe.value} -> {len(events)} events")
    return events


def describe_event(event: CalendarEvent, timezone: str = "UTC") -> str:
    """One-line description used in listings shown to the model and the user."""
    start = event.start.astimezone(pytz.timezone(timezone))
    text = f"{event.title} on {start.strftime('%Y-%m-%d')}"
    if not event.is_all_day:
        text += f" at {start.strftime('%H:%M')}"
    if event.location:
        text += f" ({event.location})"
    return text


def parse_selection(reply: str, candidates: List[CalendarEvent]) -> DeletionMatch:
    """
    Map the model's 1-based candidate numbers back onto events.

    Out-of-range and non-numeric entries are ignored; anything unusable
    yields an empty match.
    """
    data = extract_json_object(reply)
    if data is None:
        logger.warning("No JSON found in deletion selection reply, selecting nothing")
        return DeletionMatch()

    raw_indices: Any = data.get("indices")
    if not isinstance(raw_indices, list):
        return DeletionMatch()

    selected: List[CalendarEvent] = []
    seen = set()
    for raw in raw_indices:
        try:
            index = int(raw)
        except (TypeError, ValueError):
            continue
        if 1 <= index <= len(candidates) and index not in seen:
            seen.add(index)
            selected.append(candidates[index - 1])

    if not selected:
        return DeletionMatch()

    try:
        confidence = Confidence(str(data.get("confidence", "")).strip().lower())
    except ValueError:
        confidence = Confidence.MEDIUM
    return DeletionMatch(events=selected, confidence=confidence)


async def select_deletion_targets(
    message: str,
    intent: Intent,
    candidates: List[CalendarEvent],
    gateway: LanguageModelGateway,
    timezone: str = "UTC",
) -> DeletionMatch:
    """
    Narrow delete candidates to the events the user actually means.

    Without keywords the candidate set is already the user's explicit scope
    and is returned whole.
    """
    if not candidates:
        return DeletionMatch()
    if not intent.keywords:
        return DeletionMatch(events=list(candidates), confidence=Confidence.HIGH)

    listing = "\n".join(
        f"{number}. {describe_event(event, timezone)}"
        for number, event in enumerate(candidates, start=1)
    )
    prompt = DELETION_SELECTION_PROMPT.format(
        message=message,
        keywords=", ".join(intent.keywords),
        scope="wants every matching event" if intent.delete_all else "most likely means a single event",
        candidates=listing,
    )
    try:
        reply = await gateway.generate(prompt, temperature=INTERPRETER_SETTINGS.MATCHER_TEMPERATURE)
    except GatewayError as e:
        logger.warning(f"Deletion selection failed, selecting nothing: {str(e)}")
        return DeletionMatch()

    match = parse_selection(reply, candidates)
    logger.info(f"Deletion selection: {len(match.events)} of {len(candidates)} ({match.confidence.value})")
    return match


def rederive_scope_query(timeframe: Timeframe, on_date, now: datetime, timezone: str = "UTC") -> EventQuery:
    """Unqualified query for a confirmed bulk deletion, rebuilt from its stored scope."""
    return EventQuery(
        terms=[],
        timeframe=timeframe,
        on_date=on_date,
        now=now,
        timezone=timezone,
        limit=INTERPRETER_SETTINGS.SEARCH_LIMIT,
    )
