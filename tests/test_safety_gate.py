from datetime import timedelta

import pytest

from calchat.agents.interpreter.dto import Intent, IntentType
from calchat.agents.interpreter.services.safety_gate import (
    GateOutcome,
    ReplyKind,
    classify_reply,
    confirmation_warning,
    evaluate_deletion_request,
    has_deletion_language,
)
from calchat.calendar.dto import Timeframe
from conftest import make_event


def events(now, count):
    return [make_event(f"Event {i}", now + timedelta(days=i), f"e{i}") for i in range(count)]


@pytest.mark.parametrize("message, expected", [
    ("yes", ReplyKind.CONFIRM),
    ("Yes, delete them all", ReplyKind.CONFIRM),
    ("ok go ahead", ReplyKind.CONFIRM),
    ("confirm!", ReplyKind.CONFIRM),
    ("no", ReplyKind.DENY),
    ("Cancel", ReplyKind.DENY),
    ("never mind", ReplyKind.DENY),
    ("no, don't delete them", ReplyKind.DENY),
    ("wait, don't delete them", ReplyKind.DENY),
    ("please don't delete", ReplyKind.DENY),
    ("dont delete them all", ReplyKind.DENY),
    ("do not delete", ReplyKind.DENY),
    ("wait", ReplyKind.DENY),
    ("yes but not the dentist one", ReplyKind.DENY),
    ("yes no", ReplyKind.DENY),
    ("delete my dentist appointment", ReplyKind.OTHER),
    ("what's on tomorrow?", ReplyKind.OTHER),
    ("", ReplyKind.OTHER),
    ("please", ReplyKind.OTHER),
])
def test_classify_reply(message, expected):
    assert classify_reply(message) == expected


def test_has_deletion_language():
    assert has_deletion_language("remove my workouts")
    assert has_deletion_language("all the standups")
    assert not has_deletion_language("standups next week")


def test_confirmation_warning_states_count():
    assert "permanently delete 3 events" in confirmation_warning(3)
    assert "permanently delete 1 event " in confirmation_warning(1)


def test_no_candidates(now):
    decision = evaluate_deletion_request("clear my calendar", Intent(type=IntentType.DELETE_EVENT), [], now)
    assert decision.outcome == GateOutcome.NOTHING_TO_DELETE


def test_unqualified_delete_requires_confirmation(now):
    intent = Intent(type=IntentType.DELETE_EVENT, timeframe=Timeframe.PAST, delete_all=True)

    decision = evaluate_deletion_request("delete all my past events", intent, events(now, 4), now)

    assert decision.outcome == GateOutcome.REQUIRE_CONFIRMATION
    assert decision.pending.event_count == 4
    assert decision.pending.timeframe == Timeframe.PAST
    assert decision.pending.timestamp == now
    assert "4 events" in decision.message


def test_unqualified_delete_of_one_event_still_requires_confirmation(now):
    decision = evaluate_deletion_request("clear my calendar", Intent(type=IntentType.DELETE_EVENT), events(now, 1), now)
    assert decision.outcome == GateOutcome.REQUIRE_CONFIRMATION


def test_keyword_delete_proceeds(now):
    intent = Intent(type=IntentType.DELETE_EVENT, keywords=("focus",), delete_all=True)

    decision = evaluate_deletion_request("delete all focus time", intent, events(now, 25), now)

    assert decision.outcome == GateOutcome.PROCEED
    assert decision.pending is None


def test_large_match_without_deletion_wording_is_disambiguated(now):
    intent = Intent(type=IntentType.DELETE_EVENT, keywords=("standup",))

    decision = evaluate_deletion_request("standups next week", intent, events(now, 11), now)

    assert decision.outcome == GateOutcome.DISAMBIGUATE
    assert len(decision.samples) == 3
    assert "11 events" in decision.message
