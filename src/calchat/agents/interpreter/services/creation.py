"""
Event Creation Extractor

Message -> EventDraft -> validated provider payload -> created event.
The created event is mirrored locally only after the provider has
acknowledged it.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from calchat.agents.interpreter.constants import INTERPRETER_SETTINGS
from calchat.agents.interpreter.dto import CreationFailure, EventDraft
from calchat.agents.interpreter.prompts import EVENT_EXTRACTION_PROMPT
from calchat.agents.interpreter.utils.datetime_utils import localize, normalize_time, resolve_relative_date
from calchat.agents.interpreter.utils.helper import as_bool, clean_optional_text, extract_json_object
from calchat.calendar.dto import CalendarEvent
from calchat.calendar.store import EventStore
from calchat.llm.gateway import GatewayError, LanguageModelGateway

logger = logging.getLogger(__name__)

_SIMPLE_FREQUENCIES = {
    "daily": "DAILY",
    "every day": "DAILY",
    "weekly": "WEEKLY",
    "every week": "WEEKLY",
    "monthly": "MONTHLY",
    "every month": "MONTHLY",
    "yearly": "YEARLY",
    "annually": "YEARLY",
    "every year": "YEARLY",
}

CREATION_HINT = (
    "I need at least a title, a date and a start time (or \"all day\") to create an event. "
    "For example: \"Schedule dinner with John at 7 PM on Friday\"."
)


def normalize_recurrence(raw: Any) -> List[str]:
    """Model recurrence value -> list of RRULE strings (empty when none/unknown)."""
    values = raw if isinstance(raw, list) else [raw]
    rules = []
    for value in values:
        text = clean_optional_text(value)
        if text is None:
            continue
        lowered = text.lower()
        if lowered in _SIMPLE_FREQUENCIES:
            rules.append(f"RRULE:FREQ={_SIMPLE_FREQUENCIES[lowered]}")
        elif text.upper().startswith("RRULE:"):
            rules.append("RRULE:" + text[6:])
        elif text.upper().startswith("FREQ="):
            rules.append(f"RRULE:{text}")
        else:
            logger.warning(f"Ignoring unrecognised recurrence {text!r}")
    return rules


def parse_event_draft(reply: str, now: datetime) -> EventDraft:
    """Parse the model's extraction reply, normalizing dates and times."""
    data = extract_json_object(reply) or {}
    return EventDraft(
        title=clean_optional_text(data.get("title")),
        event_date=resolve_relative_date(clean_optional_text(data.get("date")), now.date()),
        start_time=normalize_time(clean_optional_text(data.get("startTime", data.get("start_time")))),
        end_time=normalize_time(clean_optional_text(data.get("endTime", data.get("end_time")))),
        location=clean_optional_text(data.get("location")),
        description=clean_optional_text(data.get("description")),
        is_all_day=as_bool(data.get("isAllDay", data.get("is_all_day", False))),
        recurrence=normalize_recurrence(data.get("recurrence")),
    )


def validate_draft(draft: EventDraft) -> Optional[CreationFailure]:
    """
    Check the fields creation cannot do without.

    Returns:
        CreationFailure naming what is missing, or None when the draft is complete
    """
    missing = []
    if not draft.title:
        missing.append("title")
    if draft.event_date is None:
        missing.append("date")
    if not draft.start_time and not draft.is_all_day:
        missing.append("start time")
    if not missing:
        return None
    return CreationFailure(
        missing_fields=missing,
        hint=f"I couldn't work out the event's {', '.join(missing)}. {CREATION_HINT}",
    )


async def extract_event_draft(
    message: str,
    gateway: LanguageModelGateway,
    now: datetime,
    timezone: str = "UTC",
) -> Union[EventDraft, CreationFailure]:
    """
    Extract and validate an event from a creation request.

    Args:
        message: Resolved user message
        gateway: Language model gateway
        now: Current instant in the user's timezone (relative dates anchor here)
        timezone: User timezone name

    Returns:
        A complete EventDraft, or a CreationFailure with a user-facing hint
    """
    prompt = EVENT_EXTRACTION_PROMPT.format(
        message=message,
        today=now.strftime("%Y-%m-%d"),
        weekday=now.strftime("%A"),
        current_time=now.strftime("%H:%M"),
        timezone=timezone,
    )
    try:
        reply = await gateway.generate(prompt, temperature=INTERPRETER_SETTINGS.EXTRACTION_TEMPERATURE)
    except GatewayError as e:
        logger.warning(f"Event extraction failed: {str(e)}")
        return CreationFailure(
            missing_fields=["title", "date", "start time"],
            hint=f"I couldn't read the event details just now. {CREATION_HINT}",
        )

    draft = parse_event_draft(reply, now)
    failure = validate_draft(draft)
    if failure:
        logger.info(f"Event extraction incomplete, missing {failure.missing_fields}")
        return failure
    return draft


def build_event_payload(
    draft: EventDraft,
    timezone: str = "UTC",
    default_duration_minutes: int = INTERPRETER_SETTINGS.DEFAULT_EVENT_DURATION_MINUTES,
) -> Dict[str, Any]:
    """Google Calendar event body for a validated draft."""
    payload: Dict[str, Any] = {"summary": draft.title}
    if draft.description:
        payload["description"] = draft.description
    if draft.location:
        payload["location"] = draft.location
    if draft.recurrence:
        payload["recurrence"] = list(draft.recurrence)

    if draft.is_all_day and not draft.start_time:
        payload["start"] = {"date": draft.event_date.isoformat()}
        payload["end"] = {"date": (draft.event_date + timedelta(days=1)).isoformat()}
        return payload

    start = localize(draft.event_date, draft.start_time, timezone)
    if draft.end_time:
        end = localize(draft.event_date, draft.end_time, timezone)
        if end <= start:
            # "10 PM to 1 AM" runs past midnight
            end += timedelta(days=1)
    else:
        end = start + timedelta(minutes=default_duration_minutes)

    payload["start"] = {"dateTime": start.isoformat(), "timeZone": timezone}
    payload["end"] = {"dateTime": end.isoformat(), "timeZone": timezone}
    return payload


async def create_event(
    store: EventStore,
    user_id: str,
    draft: EventDraft,
    timezone: str = "UTC",
) -> CalendarEvent:
    """
    Create the event upstream, then mirror the acknowledged copy.

    Raises:
        EventStoreError: If the provider rejects the event
    """
    payload = build_event_payload(draft, timezone)
    event = await store.create(user_id, payload)
    mirrored = await store.persist_mirror(user_id, event)
    logger.info(f"Created event {event.provider_event_id} '{event.title}' for {user_id}")
    return mirrored or event
