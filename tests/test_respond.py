from datetime import datetime

import pytest
import pytz

from calchat.agents.interpreter.services.respond import (
    NO_EVENTS_CONTEXT,
    compose_answer,
    format_events_for_context,
)
from calchat.llm.gateway import GatewayError
from conftest import StubGateway, make_event


@pytest.fixture
def dentist():
    return make_event("Dentist", pytz.UTC.localize(datetime(2024, 5, 2, 14, 30)), "e1", location="Smile Clinic")


def test_format_events(dentist):
    assert format_events_for_context([dentist]) == "- Dentist on 2024-05-02 at 14:30 at Smile Clinic"
    assert format_events_for_context([]) == NO_EVENTS_CONTEXT


@pytest.mark.asyncio
async def test_answer_is_grounded_in_listed_events(dentist):
    gateway = StubGateway(["Your last dentist appointment was on May 2nd at 2:30 PM."])

    answer = await compose_answer("When was my last dentist appointment?", [dentist], gateway)

    assert answer.startswith("Your last dentist appointment")
    assert "- Dentist on 2024-05-02 at 14:30" in gateway.prompts[0]


@pytest.mark.asyncio
async def test_empty_result_tells_model_nothing_was_found():
    gateway = StubGateway(["You don't have any meetings tomorrow."])

    await compose_answer("What meetings do I have tomorrow?", [], gateway)

    assert NO_EVENTS_CONTEXT in gateway.prompts[0]


@pytest.mark.asyncio
async def test_gateway_failure_falls_back_to_listing(dentist):
    answer = await compose_answer("dentist?", [dentist], StubGateway([GatewayError("down")]))

    assert answer.startswith("Here's what I found")
    assert "Dentist on 2024-05-02" in answer
