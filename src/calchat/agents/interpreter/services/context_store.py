"""
Conversation Context Store

Pure functions over ConversationContext; no I/O.
"""

from datetime import datetime

import pytz

from calchat.agents.interpreter.constants import INTERPRETER_SETTINGS
from calchat.agents.interpreter.dto import (
    ConversationContext,
    ConversationUpdate,
    IntentType,
    RecentEvent,
)
from calchat.calendar.dto import CalendarEvent


def record_mutation(
    operation: IntentType,
    event: CalendarEvent,
    timestamp: datetime,
    timezone: str = "UTC",
) -> RecentEvent:
    """Audit entry for a created or deleted event."""
    start = event.start.astimezone(pytz.timezone(timezone))
    return RecentEvent(
        operation=operation,
        title=event.title,
        date=start.strftime("%Y-%m-%d"),
        time=None if event.is_all_day else start.strftime("%H:%M"),
        provider_event_id=event.provider_event_id,
        timestamp=timestamp,
    )


def apply_update(
    context: ConversationContext,
    update: ConversationUpdate,
    max_recent: int = INTERPRETER_SETTINGS.MAX_RECENT_EVENTS,
) -> ConversationContext:
    """
    Merge a turn's update into the stored context.

    New entries go first and the oldest are evicted beyond `max_recent`.
    `last_operation` changes only when the update carries one; the pending
    mass deletion is always taken from the update.
    """
    recent_events = (list(update.recent_events) + list(context.recent_events))[:max_recent]
    return ConversationContext(
        recent_events=recent_events,
        last_operation=update.last_operation or context.last_operation,
        pending_mass_deletion=update.pending_mass_deletion,
    )
