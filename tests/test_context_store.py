from datetime import datetime

import pytz

from calchat.agents.interpreter.dto import (
    ConversationContext,
    ConversationUpdate,
    GateState,
    IntentType,
    PendingMassDeletion,
    RecentEvent,
)
from calchat.agents.interpreter.services.context_store import apply_update, record_mutation
from conftest import make_event

NOW = pytz.UTC.localize(datetime(2024, 6, 12, 9))


def entry(title):
    return RecentEvent(operation=IntentType.CREATE_EVENT, title=title, timestamp=NOW)


def test_record_mutation_uses_local_date_and_time():
    event = make_event("Dinner", pytz.UTC.localize(datetime(2024, 6, 14, 17)), "evt_1")

    recorded = record_mutation(IntentType.CREATE_EVENT, event, NOW, "Europe/Berlin")

    assert (recorded.date, recorded.time) == ("2024-06-14", "19:00")
    assert recorded.provider_event_id == "evt_1"


def test_record_mutation_all_day_has_no_time():
    event = make_event("Holiday", NOW, "evt_2", is_all_day=True)
    assert record_mutation(IntentType.DELETE_EVENT, event, NOW).time is None


def test_apply_update_prepends_and_evicts_oldest():
    context = ConversationContext(recent_events=[entry(f"old {i}") for i in range(5)])

    merged = apply_update(context, ConversationUpdate(recent_events=[entry("new")], last_operation=IntentType.CREATE_EVENT))

    assert [e.title for e in merged.recent_events] == ["new", "old 0", "old 1", "old 2", "old 3"]
    assert merged.last_operation == IntentType.CREATE_EVENT


def test_apply_update_keeps_last_operation_on_read_turns():
    context = ConversationContext(last_operation=IntentType.DELETE_EVENT)
    assert apply_update(context, ConversationUpdate()).last_operation == IntentType.DELETE_EVENT


def test_pending_deletion_is_set_and_cleared_by_updates():
    pending = PendingMassDeletion(event_count=3, timestamp=NOW)

    awaiting = apply_update(ConversationContext(), ConversationUpdate(pending_mass_deletion=pending))
    assert awaiting.gate_state == GateState.AWAITING_CONFIRMATION

    cleared = apply_update(awaiting, ConversationUpdate())
    assert cleared.gate_state == GateState.NORMAL
    assert cleared.pending_mass_deletion is None


def test_apply_update_does_not_mutate_input():
    context = ConversationContext(recent_events=[entry("a")])
    apply_update(context, ConversationUpdate(recent_events=[entry("b")], last_operation=IntentType.CREATE_EVENT))
    assert [e.title for e in context.recent_events] == ["a"]
    assert context.last_operation is None
