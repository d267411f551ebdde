"""
Deletion Safety Gate

Two-phase confirmation for irreversible bulk deletions. The gate holds no
lock: the pending proposal lives in the caller's ConversationContext and
only an explicit affirmative reply on the next turn lets it proceed.

    NORMAL --(unqualified delete, N >= 1 candidates)--> AWAITING_CONFIRMATION
    AWAITING_CONFIRMATION --(confirm reply)--> NORMAL  (delete re-derived set)
    AWAITING_CONFIRMATION --(deny reply)-----> NORMAL  (cancelled)
    AWAITING_CONFIRMATION --(anything else)--> NORMAL  (proposal dropped)
"""

import logging
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from calchat.agents.interpreter.constants import (
    BULK_WORDS,
    CONFIRMATION_WORDS,
    DELETION_WORDS,
    DENIAL_WORDS,
    INTERPRETER_SETTINGS,
    NEGATION_WORDS,
    REPLY_FILLER_WORDS,
)
from calchat.agents.interpreter.dto import Intent, PendingMassDeletion
from calchat.agents.interpreter.services.matcher import describe_event
from calchat.agents.interpreter.utils.helper import split_words
from calchat.calendar.dto import CalendarEvent

logger = logging.getLogger(__name__)


class ReplyKind(str, Enum):
    CONFIRM = "confirm"
    DENY = "deny"
    OTHER = "other"


class GateOutcome(str, Enum):
    PROCEED = "proceed"
    REQUIRE_CONFIRMATION = "require_confirmation"
    DISAMBIGUATE = "disambiguate"
    NOTHING_TO_DELETE = "nothing_to_delete"


class GateDecision(BaseModel):
    outcome: GateOutcome
    message: str = ""
    pending: Optional[PendingMassDeletion] = None
    samples: List[CalendarEvent] = []


def classify_reply(message: str) -> ReplyKind:
    """
    Decide whether a message is a bare answer to a pending confirmation.

    A reply counts only when every word is vocabulary or filler, so a new
    request like "delete my dentist appointment" is never read as "yes".
    Any negation ("wait, don't delete them") is a denial, and denial wins
    over confirmation.
    """
    words = split_words(message)
    if not words:
        return ReplyKind.OTHER
    if any(word in NEGATION_WORDS for word in words):
        return ReplyKind.DENY

    allowed = CONFIRMATION_WORDS | DENIAL_WORDS | REPLY_FILLER_WORDS
    if any(word not in allowed for word in words):
        return ReplyKind.OTHER
    if any(word in DENIAL_WORDS for word in words):
        return ReplyKind.DENY
    if any(word in CONFIRMATION_WORDS for word in words):
        return ReplyKind.CONFIRM
    return ReplyKind.OTHER


def has_deletion_language(message: str) -> bool:
    words = set(split_words(message))
    return bool(words & (DELETION_WORDS | BULK_WORDS))


def confirmation_warning(count: int) -> str:
    noun = "event" if count == 1 else "events"
    return (
        f"⚠️ This will permanently delete {count} {noun} from your calendar. "
        f"Reply \"yes\" to confirm or \"no\" to cancel."
    )


def disambiguation_message(samples: List[CalendarEvent], total: int, timezone: str = "UTC") -> str:
    lines = "\n".join(f"- {describe_event(event, timezone)}" for event in samples)
    return (
        f"I found {total} events that could match. Which one did you mean? For example:\n"
        f"{lines}\n"
        f"Please be more specific, or say \"delete all ...\" if you really mean all of them."
    )


def evaluate_deletion_request(
    message: str,
    intent: Intent,
    candidates: List[CalendarEvent],
    now: datetime,
    timezone: str = "UTC",
) -> GateDecision:
    """
    Decide what a delete request may do on this turn.

    Args:
        message: The user's own wording of the request
        intent: Classified delete intent
        candidates: Events the search returned for the intent
        now: Turn timestamp
        timezone: Timezone for sample listings

    Returns:
        GateDecision; only PROCEED permits a mutation on this turn
    """
    if not candidates:
        return GateDecision(outcome=GateOutcome.NOTHING_TO_DELETE)

    if not intent.keywords:
        pending = PendingMassDeletion(
            event_count=len(candidates),
            timestamp=now,
            timeframe=intent.timeframe,
            on_date=intent.date_mentioned,
        )
        logger.info(f"Safety gate: NORMAL -> AWAITING_CONFIRMATION ({len(candidates)} events)")
        return GateDecision(
            outcome=GateOutcome.REQUIRE_CONFIRMATION,
            message=confirmation_warning(len(candidates)),
            pending=pending,
        )

    # Keyword-qualified deletes are treated as intentional, except when a
    # large match set comes from a message that never asked to delete
    if len(candidates) > INTERPRETER_SETTINGS.DISAMBIGUATION_THRESHOLD and not has_deletion_language(message):
        samples = candidates[: INTERPRETER_SETTINGS.DISAMBIGUATION_SAMPLES]
        logger.info(f"Safety gate: disambiguation requested for {len(candidates)} candidates")
        return GateDecision(
            outcome=GateOutcome.DISAMBIGUATE,
            message=disambiguation_message(samples, len(candidates), timezone),
            samples=samples,
        )

    return GateDecision(outcome=GateOutcome.PROCEED)
