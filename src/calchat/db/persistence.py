"""
In-Memory Persistence Layer

This module provides simple in-memory storage for the user's event mirror
and per-user conversation context. Data lives for the process lifetime only.
Can be replaced with Redis, PostgreSQL, or any other persistence layer later.
"""

from typing import Dict, List, Any, Optional
import itertools
import logging

from calchat.agents.interpreter.dto import ConversationContext
from calchat.calendar.dto import CalendarEvent

logger = logging.getLogger(__name__)

# ===================================================================
# STORAGE
# ===================================================================

# user_id -> provider_event_id -> event
_event_mirrors: Dict[str, Dict[str, CalendarEvent]] = {}
_conversation_contexts: Dict[str, ConversationContext] = {}
_mirror_ids = itertools.count(1)

# ===================================================================
# EVENT MIRROR MANAGEMENT
# ===================================================================

def get_user_events(user_id: str) -> List[CalendarEvent]:
    """
    Get all mirrored events for a user.

    Args:
        user_id: User identifier

    Returns:
        List of events (empty if the user has none)
    """
    return list(_event_mirrors.get(user_id, {}).values())


def upsert_event(user_id: str, event: CalendarEvent) -> CalendarEvent:
    """
    Insert or update a mirrored event, keyed by its provider event id.

    Args:
        user_id: User identifier
        event: Event as acknowledged by the provider

    Returns:
        The stored event, carrying its local mirror id
    """
    user_events = _event_mirrors.setdefault(user_id, {})
    existing = user_events.get(event.provider_event_id)
    local_id = existing.id if existing else (event.id or str(next(_mirror_ids)))
    stored = event.model_copy(update={"id": local_id})
    user_events[event.provider_event_id] = stored
    return stored


def remove_event(user_id: str, event_id: str) -> bool:
    """
    Remove a mirrored event by its local id.

    Returns:
        True if an event was removed
    """
    user_events = _event_mirrors.get(user_id, {})
    for provider_event_id, event in list(user_events.items()):
        if event.id == event_id:
            del user_events[provider_event_id]
            return True
    return False


def replace_user_events(user_id: str, events: List[CalendarEvent]) -> int:
    """
    Replace a user's whole mirror (full sync).

    Returns:
        Number of events stored
    """
    _event_mirrors[user_id] = {}
    for event in events:
        upsert_event(user_id, event)
    return len(_event_mirrors[user_id])

# ===================================================================
# CONVERSATION CONTEXT MANAGEMENT
# ===================================================================

def get_conversation_context(user_id: str) -> ConversationContext:
    """Get the conversation context for a user (fresh and empty if unknown)."""
    return _conversation_contexts.get(user_id) or ConversationContext()


def save_conversation_context(user_id: str, context: ConversationContext) -> bool:
    """
    Save the conversation context for a user.

    Returns:
        True if saved successfully
    """
    try:
        _conversation_contexts[user_id] = context
        return True
    except Exception as e:
        logger.error(f"Failed to save conversation context for {user_id}: {str(e)}")
        return False


def clear_conversation_context(user_id: str) -> bool:
    """Drop a user's conversation context."""
    _conversation_contexts.pop(user_id, None)
    return True

# ===================================================================
# UTILITY FUNCTIONS
# ===================================================================

def get_storage_stats() -> Dict[str, Any]:
    """
    Get statistics about current storage usage.

    Returns:
        Dictionary with storage statistics
    """
    return {
        "users_with_events": len(_event_mirrors),
        "total_events": sum(len(events) for events in _event_mirrors.values()),
        "users_with_context": len(_conversation_contexts),
        "storage_type": "in-memory",
    }


def reset_storage(user_id: Optional[str] = None) -> None:
    """Clear everything, or a single user's data."""
    if user_id is None:
        _event_mirrors.clear()
        _conversation_contexts.clear()
        return
    _event_mirrors.pop(user_id, None)
    _conversation_contexts.pop(user_id, None)
