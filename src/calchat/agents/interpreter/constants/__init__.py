"""
Calendar Interpreter Configuration
"""


class INTERPRETER_SETTINGS:
    """Limits and sampling temperatures for each pipeline step"""

    # Search
    SEARCH_LIMIT: int = 100
    QUERY_TOP_N: int = 5

    # Conversation context
    MAX_RECENT_EVENTS: int = 5

    # Deletion safety
    DISAMBIGUATION_THRESHOLD: int = 10
    DISAMBIGUATION_SAMPLES: int = 3

    # Creation
    DEFAULT_EVENT_DURATION_MINUTES: int = 60

    # Temperatures
    RESOLVER_TEMPERATURE: float = 0.1
    INTENT_TEMPERATURE: float = 0.1
    MATCHER_TEMPERATURE: float = 0.1
    EXTRACTION_TEMPERATURE: float = 0.1
    RESPONSE_TEMPERATURE: float = 0.7


# Phrases that point back at something said earlier
ANAPHORA_CUES = (
    "that",
    "it",
    "this",
    "them",
    "those",
    "the event",
    "that event",
    "this event",
    "the meeting",
    "that meeting",
    "the appointment",
    "that appointment",
    "the one",
    "same event",
)

CONFIRMATION_WORDS = frozenset({"yes", "confirm", "proceed", "delete", "ok", "sure"})
DENIAL_WORDS = frozenset({"no", "cancel", "stop", "abort", "nevermind"})

# Any of these in a reply to a pending deletion cancels it
NEGATION_WORDS = frozenset({"don't", "dont", "not", "wait", "hold", "never", "nope", "shouldn't", "won't"})

# Words allowed around a confirm/deny so that "yes, delete them all" still
# counts as a bare reply while "delete my dentist appointment" does not
REPLY_FILLER_WORDS = frozenset({
    "please", "go", "ahead", "do", "it", "them", "all", "everything", "of",
    "those", "that", "just", "yeah", "yep", "y", "okay", "i'm", "im", "am",
    "i", "thanks", "thank", "you", "the", "events",
    "now", "absolutely", "definitely",
})

DELETION_WORDS = frozenset({"delete", "remove", "cancel", "clear", "erase", "drop", "wipe", "purge"})
BULK_WORDS = frozenset({"all", "every", "everything", "entire", "whole"})

# Each group is a set of interchangeable search terms
KEYWORD_SYNONYMS = (
    ("focus", "focus time", "studying", "study", "🎯"),
    ("meeting", "sync", "standup", "stand-up", "call"),
    ("doctor", "dentist", "appointment", "checkup", "check-up"),
    ("workout", "gym", "exercise", "training"),
    ("lunch", "dinner", "breakfast", "meal"),
)
