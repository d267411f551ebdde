from datetime import date

import pytest

from calchat.agents.interpreter.dto import Intent, IntentType
from calchat.agents.interpreter.services.intent_classifier import classify_intent, parse_intent
from calchat.calendar.dto import Timeframe
from calchat.llm.gateway import GatewayError
from conftest import StubGateway

TODAY = date(2024, 6, 12)


def test_parse_full_delete_intent():
    intent = parse_intent(
        'Sure! {"type": "DELETE_EVENT", "keywords": ["focus", "Focus", " "], '
        '"timeframe": "future", "date_mentioned": null, "delete_all": true}'
    )
    assert intent.type == IntentType.DELETE_EVENT
    assert intent.keywords == ("focus",)
    assert intent.timeframe == Timeframe.FUTURE
    assert intent.date_mentioned is None
    assert intent.delete_all is True


def test_parse_specific_date():
    intent = parse_intent(
        '{"type": "query_events", "keywords": "meeting", "timeframe": "specific_date", '
        '"date_mentioned": "2024-06-13"}'
    )
    assert intent.type == IntentType.QUERY_EVENTS
    assert intent.keywords == ("meeting",)
    assert intent.timeframe == Timeframe.SPECIFIC_DATE
    assert intent.date_mentioned == date(2024, 6, 13)


@pytest.mark.parametrize("reply", [
    "",
    "I think the user wants to delete something",
    '{"type": "DESTROY_EVERYTHING", "keywords": []}',
    '{"type": "DELETE_EVENT", "keywords": [}',
    '["DELETE_EVENT"]',
])
def test_unusable_reply_defaults_to_query(reply):
    assert parse_intent(reply) == Intent.default()
    assert parse_intent(reply).type == IntentType.QUERY_EVENTS


def test_unknown_timeframe_and_bad_date_are_dropped():
    intent = parse_intent('{"type": "QUERY_EVENTS", "timeframe": "someday", "date_mentioned": "soon"}')
    assert intent.timeframe == Timeframe.NONE
    assert intent.date_mentioned is None


def test_intent_is_immutable():
    intent = parse_intent('{"type": "QUERY_EVENTS"}')
    with pytest.raises(Exception):
        intent.type = IntentType.DELETE_EVENT


@pytest.mark.asyncio
async def test_classify_sends_message_and_date():
    gateway = StubGateway(['{"type": "CREATE_EVENT", "keywords": ["dinner", "John"], "timeframe": "future"}'])

    intent = await classify_intent("Schedule dinner with John at 7 PM Friday", gateway, TODAY)

    assert intent.type == IntentType.CREATE_EVENT
    assert intent.keywords == ("dinner", "John")
    assert "Schedule dinner with John" in gateway.prompts[0]
    assert "2024-06-12" in gateway.prompts[0]


@pytest.mark.asyncio
async def test_classify_gateway_failure_defaults_to_query():
    gateway = StubGateway([GatewayError("rate limited")])

    assert await classify_intent("delete everything", gateway, TODAY) == Intent.default()
