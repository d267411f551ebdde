"""
Intent Classifier

The model is an untrusted oracle here: its reply is parsed leniently and
anything unusable degrades to the least destructive intent (a plain query).
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from calchat.agents.interpreter.constants import INTERPRETER_SETTINGS
from calchat.agents.interpreter.dto import Intent, IntentType
from calchat.agents.interpreter.prompts import INTENT_CLASSIFICATION_PROMPT
from calchat.agents.interpreter.utils.helper import as_bool, clean_optional_text, extract_json_object
from calchat.calendar.dto import Timeframe
from calchat.llm.gateway import GatewayError, LanguageModelGateway

logger = logging.getLogger(__name__)


def _parse_keywords(raw: Any) -> List[str]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        return []
    keywords, seen = [], set()
    for item in raw:
        keyword = clean_optional_text(item)
        if keyword and keyword.lower() not in seen:
            seen.add(keyword.lower())
            keywords.append(keyword)
    return keywords


def _parse_timeframe(raw: Any) -> Timeframe:
    value = clean_optional_text(raw)
    if value is None:
        return Timeframe.NONE
    try:
        return Timeframe(value.lower())
    except ValueError:
        return Timeframe.NONE


def _parse_date(raw: Any):
    value = clean_optional_text(raw)
    if value is None:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def parse_intent(reply: str) -> Intent:
    """
    Turn a model reply into an Intent. Never raises.

    Args:
        reply: Raw model output, expected to contain one JSON object

    Returns:
        Parsed intent, or Intent.default() when the reply is unusable
    """
    data: Optional[Dict[str, Any]] = extract_json_object(reply)
    if data is None:
        logger.warning("No JSON found in intent reply, defaulting to QUERY_EVENTS")
        return Intent.default()

    try:
        intent_type = IntentType(str(data.get("type", "")).strip().upper())
    except ValueError:
        logger.warning(f"Unknown intent type {data.get('type')!r}, defaulting to QUERY_EVENTS")
        return Intent.default()

    return Intent(
        type=intent_type,
        keywords=tuple(_parse_keywords(data.get("keywords"))),
        timeframe=_parse_timeframe(data.get("timeframe")),
        date_mentioned=_parse_date(data.get("date_mentioned", data.get("dateMentioned"))),
        delete_all=as_bool(data.get("delete_all", data.get("deleteAll", False))),
    )


async def classify_intent(message: str, gateway: LanguageModelGateway, today: date) -> Intent:
    """Classify a (resolved) message into a structured intent."""
    prompt = INTENT_CLASSIFICATION_PROMPT.format(message=message, today=today.isoformat())
    try:
        reply = await gateway.generate(prompt, temperature=INTERPRETER_SETTINGS.INTENT_TEMPERATURE)
    except GatewayError as e:
        logger.warning(f"Intent classification failed, defaulting to QUERY_EVENTS: {str(e)}")
        return Intent.default()

    intent = parse_intent(reply)
    logger.info(
        f"Intent: {intent.type.value} keywords={list(intent.keywords)} "
        f"timeframe={intent.timeframe.value} delete_all={intent.delete_all}"
    )
    return intent
