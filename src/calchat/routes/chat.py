from fastapi import APIRouter, Depends, HTTPException
import logging
from collections import defaultdict
from datetime import datetime, timedelta

from calchat.agents.interpreter.dto import TurnResult
from calchat.agents.interpreter.services.context_store import apply_update
from calchat.agents.interpreter.workflow import CalendarInterpreter
from calchat.calendar.store import build_event_store
from calchat.constants import RATE_LIMIT_SETTINGS
from calchat.db import persistence
from calchat.llm.gateway import LanguageModelGateway
from calchat.routes.dto import ChatRequest, ResetRequest

# Set up logging
logger = logging.getLogger(__name__)

router = APIRouter()

# Simple rate limiting (in production, use Redis or proper rate limiter)
rate_limit_store = defaultdict(list)

_interpreter = None


def get_interpreter() -> CalendarInterpreter:
    """Shared interpreter instance, built on first use."""
    global _interpreter
    if _interpreter is None:
        _interpreter = CalendarInterpreter(LanguageModelGateway(), build_event_store())
    return _interpreter


def check_rate_limit(user_id: str) -> bool:
    """Simple rate limiting - 30 requests per minute per user"""
    now = datetime.now()
    window_start = now - timedelta(seconds=RATE_LIMIT_SETTINGS.WINDOW_SECONDS)

    # Clean old entries
    rate_limit_store[user_id] = [
        timestamp for timestamp in rate_limit_store[user_id]
        if timestamp > window_start
    ]

    if len(rate_limit_store[user_id]) >= RATE_LIMIT_SETTINGS.REQUESTS:
        return False

    rate_limit_store[user_id].append(now)
    return True


@router.post("/", response_model=TurnResult)
async def chat(request: ChatRequest, interpreter: CalendarInterpreter = Depends(get_interpreter)):
    """
    Process one chat message against the user's calendar.

    Flow:
    1. Load the user's conversation context
    2. Run the message through the interpreter
    3. Merge the turn's conversation update and return the result
    """
    if not check_rate_limit(request.user_id):
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Maximum {RATE_LIMIT_SETTINGS.REQUESTS} requests per minute."
        )

    if not request.message.strip():
        raise HTTPException(status_code=400, detail="Message cannot be empty")

    logger.info(f"Chat message from {request.user_id}: {request.message!r}")
    context = persistence.get_conversation_context(request.user_id)
    result = await interpreter.process_turn(request.user_id, request.message, context)
    persistence.save_conversation_context(
        request.user_id, apply_update(context, result.conversation_update)
    )
    return result


@router.post("/reset")
def reset(request: ResetRequest):
    """Forget the user's short-term conversation memory."""
    persistence.clear_conversation_context(request.user_id)
    return {"success": True, "user_id": request.user_id}
