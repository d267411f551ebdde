"""
Context Resolver

Rewrites anaphoric references ("delete that", "move it") into concrete
event references using the conversation's recent mutations. Messages
without a cue, or turns without history, skip the model entirely.
"""

import logging
import re
from typing import List

from calchat.agents.interpreter.constants import ANAPHORA_CUES, INTERPRETER_SETTINGS
from calchat.agents.interpreter.dto import ConversationContext, RecentEvent
from calchat.agents.interpreter.prompts import CONTEXT_RESOLUTION_PROMPT
from calchat.llm.gateway import GatewayError, LanguageModelGateway

logger = logging.getLogger(__name__)

_CUE_RE = re.compile(
    r"\b(" + "|".join(re.escape(cue) for cue in sorted(ANAPHORA_CUES, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)


def has_anaphora(message: str) -> bool:
    return bool(_CUE_RE.search(message))


def format_recent_events(recent_events: List[RecentEvent]) -> str:
    lines = []
    for entry in recent_events:
        when = " ".join(part for part in (entry.date, entry.time) if part)
        verb = "created" if entry.operation.value == "CREATE_EVENT" else "deleted"
        lines.append(f"- {verb}: {entry.title}{' on ' + when if when else ''}")
    return "\n".join(lines)


async def resolve_references(
    message: str,
    context: ConversationContext,
    gateway: LanguageModelGateway,
) -> str:
    """
    Resolve pronouns in a message against recent conversation history.

    Args:
        message: Raw user message
        context: Conversation context carrying recent mutations
        gateway: Language model gateway

    Returns:
        The rewritten message, or the original when nothing needs (or
        could be) resolved
    """
    if not context.recent_events or not has_anaphora(message):
        return message

    prompt = CONTEXT_RESOLUTION_PROMPT.format(
        recent_events=format_recent_events(context.recent_events),
        last_operation=context.last_operation.value if context.last_operation else "none",
        message=message,
    )
    try:
        rewritten = await gateway.generate(prompt, temperature=INTERPRETER_SETTINGS.RESOLVER_TEMPERATURE)
    except GatewayError as e:
        logger.warning(f"Reference resolution failed, keeping original message: {str(e)}")
        return message

    rewritten = rewritten.strip()
    if not rewritten:
        return message
    logger.info(f"Resolved message: '{message}' -> '{rewritten}'")
    return rewritten
