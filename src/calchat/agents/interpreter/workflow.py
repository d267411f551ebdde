"""
Calendar Command Interpreter Workflow

One user turn runs through a LangGraph state graph:

    START -> (pending confirm)  confirm_deletion -> END
          -> (pending deny)     cancel_deletion  -> END
          -> resolve_context -> classify_intent -> query_events  -> END
                                                -> create_event  -> END
                                                -> delete_events -> END

Every path ends with a TurnResult whose conversation_update the caller
merges into the stored ConversationContext before the next turn.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

import pytz
from langgraph.graph import END, START, StateGraph
from typing_extensions import TypedDict

from calchat.agents.interpreter.constants import INTERPRETER_SETTINGS
from calchat.agents.interpreter.dto import (
    Confidence,
    ConversationContext,
    ConversationUpdate,
    CreationFailure,
    Intent,
    IntentType,
    TurnResult,
)
from calchat.agents.interpreter.services.context_resolver import resolve_references
from calchat.agents.interpreter.services.context_store import record_mutation
from calchat.agents.interpreter.services.creation import create_event, extract_event_draft
from calchat.agents.interpreter.services.intent_classifier import classify_intent
from calchat.agents.interpreter.services.matcher import (
    describe_event,
    rederive_scope_query,
    search_events,
    select_deletion_targets,
)
from calchat.agents.interpreter.services.respond import compose_answer
from calchat.agents.interpreter.services.safety_gate import (
    GateOutcome,
    ReplyKind,
    classify_reply,
    evaluate_deletion_request,
)
from calchat.calendar.constants import CALENDAR_SETTINGS
from calchat.calendar.dto import CalendarEvent
from calchat.calendar.store import EventStore, EventStoreError
from calchat.llm.gateway import LanguageModelGateway

logger = logging.getLogger(__name__)

STORE_UNAVAILABLE_MESSAGE = "I couldn't reach your calendar right now. Please try again in a moment."
GENERIC_ERROR_MESSAGE = "Sorry, I encountered an error processing your request."


class TurnState(TypedDict):
    user_id: str
    message: str
    context: ConversationContext
    now: datetime
    resolved_message: Optional[str]
    intent: Optional[Intent]
    result: Optional[TurnResult]


class CalendarInterpreter:
    """
    Natural-language calendar command interpreter.

    Args:
        gateway: Language model gateway
        store: Event store accessor
        timezone: User-facing timezone for dates, times and "now"
    """

    def __init__(
        self,
        gateway: LanguageModelGateway,
        store: EventStore,
        timezone: str = CALENDAR_SETTINGS.TIMEZONE,
    ):
        self.gateway = gateway
        self.store = store
        self.timezone = timezone
        self.graph = self._build_graph()

    def _build_graph(self):
        builder = StateGraph(TurnState)

        # Nodes
        builder.add_node("confirm_deletion", self.handle_confirmation)
        builder.add_node("cancel_deletion", self.handle_cancellation)
        builder.add_node("resolve_context", self.resolve)
        builder.add_node("classify_intent", self.classify)
        builder.add_node("query_events", self.handle_query)
        builder.add_node("create_event", self.handle_create)
        builder.add_node("delete_events", self.handle_delete)

        # Edges
        builder.add_conditional_edges(
            START,
            self.route_pending_reply,
            ["confirm_deletion", "cancel_deletion", "resolve_context"],
        )
        builder.add_edge("resolve_context", "classify_intent")
        builder.add_conditional_edges(
            "classify_intent",
            self.route_intent,
            ["query_events", "create_event", "delete_events"],
        )
        for node in ("confirm_deletion", "cancel_deletion", "query_events", "create_event", "delete_events"):
            builder.add_edge(node, END)

        return builder.compile()

    async def process_turn(
        self,
        user_id: str,
        message: str,
        context: Optional[ConversationContext] = None,
        now: Optional[datetime] = None,
    ) -> TurnResult:
        """
        Interpret one user message. Never raises.

        Args:
            user_id: Owner of the calendar
            message: Raw chat message
            context: Conversation context from previous turns
            now: Turn timestamp (defaults to the current time in the user's timezone)

        Returns:
            TurnResult carrying the reply and the conversation update
        """
        context = context or ConversationContext()
        now = now or datetime.now(pytz.timezone(self.timezone))

        try:
            final_state = await self.graph.ainvoke({
                "user_id": user_id,
                "message": message,
                "context": context,
                "now": now,
                "resolved_message": None,
                "intent": None,
                "result": None,
            })
        except Exception as e:
            logger.exception(f"Turn processing failed for {user_id}: {str(e)}")
            return TurnResult(success=False, message=GENERIC_ERROR_MESSAGE)

        result = final_state.get("result")
        if result is None:
            logger.error(f"Turn for {user_id} finished without a result")
            return TurnResult(success=False, message=GENERIC_ERROR_MESSAGE)
        return result

    # ------------------------------------------------------------------ #
    # Routing                                                            #
    # ------------------------------------------------------------------ #

    def route_pending_reply(self, state: TurnState) -> str:
        if state["context"].pending_mass_deletion is None:
            return "resolve_context"
        reply = classify_reply(state["message"])
        if reply == ReplyKind.CONFIRM:
            return "confirm_deletion"
        if reply == ReplyKind.DENY:
            return "cancel_deletion"
        logger.info("Pending mass deletion dropped: reply was not a confirmation")
        return "resolve_context"

    def route_intent(self, state: TurnState) -> str:
        return {
            IntentType.CREATE_EVENT: "create_event",
            IntentType.DELETE_EVENT: "delete_events",
        }.get(state["intent"].type, "query_events")

    # ------------------------------------------------------------------ #
    # Understanding                                                      #
    # ------------------------------------------------------------------ #

    async def resolve(self, state: TurnState) -> dict:
        resolved = await resolve_references(state["message"], state["context"], self.gateway)
        return {"resolved_message": resolved}

    async def classify(self, state: TurnState) -> dict:
        intent = await classify_intent(state["resolved_message"], self.gateway, state["now"].date())
        return {"intent": intent}

    # ------------------------------------------------------------------ #
    # Query                                                              #
    # ------------------------------------------------------------------ #

    async def handle_query(self, state: TurnState) -> dict:
        try:
            events = await search_events(
                self.store, state["user_id"], state["intent"], state["now"], self.timezone
            )
        except EventStoreError as e:
            logger.error(f"Event search failed: {str(e)}")
            return {"result": TurnResult(success=False, message=STORE_UNAVAILABLE_MESSAGE)}

        top_events = events[: INTERPRETER_SETTINGS.QUERY_TOP_N]
        answer = await compose_answer(state["resolved_message"], top_events, self.gateway, self.timezone)
        return {"result": TurnResult(success=True, message=answer, events=top_events)}

    # ------------------------------------------------------------------ #
    # Create                                                             #
    # ------------------------------------------------------------------ #

    async def handle_create(self, state: TurnState) -> dict:
        draft = await extract_event_draft(state["resolved_message"], self.gateway, state["now"], self.timezone)
        if isinstance(draft, CreationFailure):
            return {"result": TurnResult(success=False, message=draft.hint)}

        try:
            event = await create_event(self.store, state["user_id"], draft, self.timezone)
        except EventStoreError as e:
            logger.error(f"Event creation failed: {str(e)}")
            return {"result": TurnResult(
                success=False,
                message=f"I couldn't create \"{draft.title}\" in your calendar. Please try again.",
            )}

        return {"result": TurnResult(
            success=True,
            message=f"✅ Created {describe_event(event, self.timezone)}.",
            event=event,
            conversation_update=ConversationUpdate(
                recent_events=[record_mutation(IntentType.CREATE_EVENT, event, state["now"], self.timezone)],
                last_operation=IntentType.CREATE_EVENT,
            ),
        )}

    # ------------------------------------------------------------------ #
    # Delete                                                             #
    # ------------------------------------------------------------------ #

    async def handle_delete(self, state: TurnState) -> dict:
        intent = state["intent"]
        try:
            candidates = await search_events(
                self.store, state["user_id"], intent, state["now"], self.timezone
            )
        except EventStoreError as e:
            logger.error(f"Event search failed: {str(e)}")
            return {"result": TurnResult(success=False, message=STORE_UNAVAILABLE_MESSAGE)}

        decision = evaluate_deletion_request(
            state["message"], intent, candidates, state["now"], self.timezone
        )

        if decision.outcome == GateOutcome.NOTHING_TO_DELETE:
            return {"result": TurnResult(success=False, message=self._not_found_message(intent))}

        if decision.outcome == GateOutcome.REQUIRE_CONFIRMATION:
            return {"result": TurnResult(
                success=True,
                message=decision.message,
                requires_confirmation=True,
                event_count=decision.pending.event_count,
                conversation_update=ConversationUpdate(pending_mass_deletion=decision.pending),
            )}

        if decision.outcome == GateOutcome.DISAMBIGUATE:
            return {"result": TurnResult(success=True, message=decision.message, events=decision.samples)}

        match = await select_deletion_targets(
            state["resolved_message"], intent, candidates, self.gateway, self.timezone
        )
        if not match.events:
            return {"result": TurnResult(success=False, message=self._not_found_message(intent))}

        result = await self._delete_and_report(state["user_id"], match.events, state["now"])
        if result.success and match.confidence == Confidence.LOW:
            result.message = f"I went with my best guess. {result.message}"
        return {"result": result}

    async def handle_confirmation(self, state: TurnState) -> dict:
        pending = state["context"].pending_mass_deletion
        query = rederive_scope_query(pending.timeframe, pending.on_date, state["now"], self.timezone)
        try:
            candidates = await self.store.search(state["user_id"], query)
        except EventStoreError as e:
            logger.error(f"Event search failed: {str(e)}")
            return {"result": TurnResult(success=False, message=STORE_UNAVAILABLE_MESSAGE)}

        logger.info(f"Safety gate: AWAITING_CONFIRMATION -> NORMAL (confirmed, {len(candidates)} events)")
        if len(candidates) != pending.event_count:
            logger.warning(
                f"Calendar changed since confirmation was requested: "
                f"{pending.event_count} proposed, {len(candidates)} now match"
            )
        if not candidates:
            return {"result": TurnResult(success=True, message="There are no events left to delete.")}

        return {"result": await self._delete_and_report(state["user_id"], candidates, state["now"])}

    async def handle_cancellation(self, state: TurnState) -> dict:
        logger.info("Safety gate: AWAITING_CONFIRMATION -> NORMAL (cancelled)")
        return {"result": TurnResult(success=True, message="Okay, I cancelled the deletion. No events were removed.")}

    async def _delete_and_report(
        self,
        user_id: str,
        events: List[CalendarEvent],
        now: datetime,
    ) -> TurnResult:
        deleted, failed = await self._delete_events(user_id, events)
        total = len(events)

        if not deleted:
            return TurnResult(
                success=False,
                message=f"I couldn't delete {'that event' if total == 1 else f'those {total} events'}. Please try again.",
            )

        if failed:
            message = f"Deleted {len(deleted)} of {total} events. {len(failed)} could not be deleted."
        elif len(deleted) == 1:
            message = f"🗑️ Deleted {describe_event(deleted[0], self.timezone)}."
        else:
            message = f"🗑️ Deleted {len(deleted)} events."

        entries = [
            record_mutation(IntentType.DELETE_EVENT, event, now, self.timezone)
            for event in deleted[: INTERPRETER_SETTINGS.MAX_RECENT_EVENTS]
        ]
        return TurnResult(
            success=True,
            message=message,
            deleted_events=deleted,
            conversation_update=ConversationUpdate(
                recent_events=entries,
                last_operation=IntentType.DELETE_EVENT,
            ),
        )

    async def _delete_events(
        self,
        user_id: str,
        events: List[CalendarEvent],
    ) -> Tuple[List[CalendarEvent], List[CalendarEvent]]:
        """Delete one by one; one failure does not stop the rest."""
        deleted, failed = [], []
        for event in events:
            try:
                await self.store.delete(user_id, event.provider_event_id)
            except EventStoreError as e:
                logger.error(f"Deleting {event.provider_event_id} failed: {str(e)}")
                failed.append(event)
                continue
            await self.store.remove_mirror(user_id, event.id)
            deleted.append(event)
        return deleted, failed

    def _not_found_message(self, intent: Intent) -> str:
        if intent.keywords:
            return f"I couldn't find any events matching \"{', '.join(intent.keywords)}\" to delete."
        return "I couldn't find any events to delete."
