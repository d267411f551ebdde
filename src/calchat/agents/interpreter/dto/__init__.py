"""
Interpreter Data Transfer Objects (DTOs)

This module contains all data models used by the calendar command interpreter:
- Intent classification of one user turn
- Short-lived conversation context and the per-turn update
- Deletion matches and event drafts
- The structured turn result returned to the chat endpoint
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from calchat.calendar.dto import CalendarEvent, Timeframe


class IntentType(str, Enum):
    QUERY_EVENTS = "QUERY_EVENTS"
    CREATE_EVENT = "CREATE_EVENT"
    DELETE_EVENT = "DELETE_EVENT"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class GateState(str, Enum):
    NORMAL = "NORMAL"
    AWAITING_CONFIRMATION = "AWAITING_CONFIRMATION"


class Intent(BaseModel):
    """Classification of one user turn. Immutable once produced."""
    model_config = ConfigDict(frozen=True)

    type: IntentType = IntentType.QUERY_EVENTS
    keywords: Tuple[str, ...] = ()
    timeframe: Timeframe = Timeframe.NONE
    date_mentioned: Optional[date] = None
    delete_all: bool = False

    @classmethod
    def default(cls) -> "Intent":
        """Least destructive interpretation: a plain query with no filters."""
        return cls()


class RecentEvent(BaseModel):
    """Audit entry for one successful mutation."""
    operation: IntentType
    title: str
    date: Optional[str] = None
    time: Optional[str] = None
    provider_event_id: Optional[str] = None
    timestamp: datetime


class PendingMassDeletion(BaseModel):
    """Unconfirmed bulk deletion awaiting the user's next reply."""
    event_count: int
    timestamp: datetime
    timeframe: Timeframe = Timeframe.NONE
    on_date: Optional[date] = None


class ConversationContext(BaseModel):
    """Per-user short-lived memory; never the source of truth for events."""
    recent_events: List[RecentEvent] = []
    last_operation: Optional[IntentType] = None
    pending_mass_deletion: Optional[PendingMassDeletion] = None

    @property
    def gate_state(self) -> GateState:
        if self.pending_mass_deletion is None:
            return GateState.NORMAL
        return GateState.AWAITING_CONFIRMATION


class ConversationUpdate(BaseModel):
    """
    Delta a caller merges into the stored context after a turn.

    `recent_events` holds new entries, newest first. `pending_mass_deletion`
    is authoritative: every turn either sets it or clears it.
    """
    recent_events: List[RecentEvent] = []
    last_operation: Optional[IntentType] = None
    pending_mass_deletion: Optional[PendingMassDeletion] = None


class DeletionMatch(BaseModel):
    """Candidates a delete request was narrowed to."""
    events: List[CalendarEvent] = []
    confidence: Confidence = Confidence.LOW


class EventDraft(BaseModel):
    """Event fields extracted from a creation request."""
    title: Optional[str] = None
    event_date: Optional[date] = None
    start_time: Optional[str] = None  # HH:MM
    end_time: Optional[str] = None  # HH:MM
    location: Optional[str] = None
    description: Optional[str] = None
    is_all_day: bool = False
    recurrence: List[str] = []


class CreationFailure(BaseModel):
    """Extraction did not yield enough to create an event."""
    missing_fields: List[str] = []
    hint: str


class TurnResult(BaseModel):
    """Structured outcome of one user turn."""
    success: bool
    message: str
    events: Optional[List[CalendarEvent]] = None
    deleted_events: Optional[List[CalendarEvent]] = None
    event: Optional[CalendarEvent] = None
    requires_confirmation: bool = False
    event_count: Optional[int] = None
    conversation_update: ConversationUpdate = Field(default_factory=ConversationUpdate)
