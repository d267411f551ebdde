"""
Response Composer

Answers event queries in prose, grounded only in the events the search
returned. An empty result is stated explicitly so the model has nothing
to embellish.
"""

import logging
from typing import List

import pytz

from calchat.agents.interpreter.constants import INTERPRETER_SETTINGS
from calchat.agents.interpreter.prompts import RESPONSE_PROMPT
from calchat.calendar.dto import CalendarEvent
from calchat.llm.gateway import GatewayError, LanguageModelGateway

logger = logging.getLogger(__name__)

NO_EVENTS_CONTEXT = "No relevant calendar events found."


def format_event_line(event: CalendarEvent, timezone: str = "UTC") -> str:
    start = event.start.astimezone(pytz.timezone(timezone))
    line = f"- {event.title} on {start.strftime('%Y-%m-%d')}"
    if not event.is_all_day:
        line += f" at {start.strftime('%H:%M')}"
    if event.location:
        line += f" at {event.location}"
    return line


def format_events_for_context(events: List[CalendarEvent], timezone: str = "UTC") -> str:
    if not events:
        return NO_EVENTS_CONTEXT
    return "\n".join(format_event_line(event, timezone) for event in events)


def _create_fallback_response(events: List[CalendarEvent], timezone: str) -> str:
    if not events:
        return "I couldn't find any relevant events in your calendar."
    return "Here's what I found in your calendar:\n" + format_events_for_context(events, timezone)


async def compose_answer(
    message: str,
    events: List[CalendarEvent],
    gateway: LanguageModelGateway,
    timezone: str = "UTC",
) -> str:
    """
    Generate a conversational answer from retrieved events.

    Args:
        message: The user's question
        events: Events surfaced by the search (already capped)
        gateway: Language model gateway
        timezone: Timezone used to render dates and times

    Returns:
        Answer text; a plain listing if the model is unavailable
    """
    prompt = RESPONSE_PROMPT.format(
        message=message,
        context=format_events_for_context(events, timezone),
    )
    try:
        response = await gateway.generate(prompt, temperature=INTERPRETER_SETTINGS.RESPONSE_TEMPERATURE)
    except GatewayError as e:
        logger.warning(f"Response generation failed, using plain listing: {str(e)}")
        return _create_fallback_response(events, timezone)

    response = response.strip()
    return response or _create_fallback_response(events, timezone)
