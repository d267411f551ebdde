from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from calchat.calendar.store import MirroredEventStore
from calchat.db import persistence
from calchat.routes.chat import get_interpreter
from calchat.routes.dto import SyncRequest, SyncResponse

# Set up logging
logger = logging.getLogger(__name__)

router = APIRouter()


def get_event_store() -> MirroredEventStore:
    return get_interpreter().store


@router.post("/sync", response_model=SyncResponse)
def sync_events(request: SyncRequest, store: MirroredEventStore = Depends(get_event_store)):
    """
    Replace the user's event mirror with events fetched by the client.

    The client already holds the user's Google token, so it pushes raw
    Google Calendar events here instead of the server fetching them.
    """
    try:
        count = store.sync_events(request.user_id, request.events)
    except Exception as e:
        logger.error(f"Sync failed for {request.user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Sync failed: {str(e)}")

    return SyncResponse(
        success=True,
        message=f"Synced {count} events",
        user_id=request.user_id,
        event_count=count,
    )


@router.get("/")
def list_events(user_id: str = Query(..., description="Calendar owner")):
    """Mirrored events for a user, newest first."""
    events = sorted(persistence.get_user_events(user_id), key=lambda event: event.start, reverse=True)
    return {"events": [event.model_dump(mode="json") for event in events], "count": len(events)}
