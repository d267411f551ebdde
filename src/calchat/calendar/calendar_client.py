"""
Calendar Provider Clients

Providers own the upstream calendar. They speak Google Calendar event
payloads (`summary`, `start.dateTime` / `start.date`, ...):
- GoogleCalendarClient: Google Calendar API v3
- InMemoryCalendarProvider: process-local calendar for development and tests
"""

import asyncio
import logging
import os
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from calchat.calendar.constants import CALENDAR_SETTINGS, GOOGLE_CALENDAR_SETTINGS
from calchat.calendar.dto import DeleteOutcome
from calchat.calendar.utils.datetime_utils import parse_google_calendar_datetime, to_utc_iso

# Set up logging
logger = logging.getLogger(__name__)


class CalendarProviderError(Exception):
    """Raised when the upstream calendar rejects or fails a call."""


class GoogleCalendarClient:
    """
    Google Calendar implementation of the calendar provider interface.

    The googleapiclient service is blocking, so every call is pushed to a
    worker thread to keep the interpreter's turn async.
    """

    def __init__(
        self,
        credentials_file: str = GOOGLE_CALENDAR_SETTINGS.CREDENTIALS_FILE,
        token_file: str = GOOGLE_CALENDAR_SETTINGS.TOKEN_FILE,
        calendar_id: str = CALENDAR_SETTINGS.PRIMARY_CALENDAR_ID,
    ):
        """
        Initialize the Google Calendar client.

        Args:
            credentials_file: Path to the Google Calendar API credentials file
            token_file: Path where the authorized user token is cached
            calendar_id: Calendar all operations target
        """
        self.credentials_file = credentials_file
        self.token_file = token_file
        self.calendar_id = calendar_id
        self.service = None
        self._initialize_service()

    def _initialize_service(self):
        """
        Initialize the Google Calendar API service.

        Loads cached OAuth credentials, refreshing or running the installed
        app flow when needed, and builds the service object.
        """
        try:
            creds = None
            scopes = GOOGLE_CALENDAR_SETTINGS.SCOPES

            if os.path.exists(self.token_file):
                creds = Credentials.from_authorized_user_file(self.token_file, scopes)

            if not creds or not creds.valid:
                if creds and creds.expired and creds.refresh_token:
                    creds.refresh(Request())
                else:
                    flow = InstalledAppFlow.from_client_secrets_file(self.credentials_file, scopes)
                    # Fixed port so the redirect URI can be whitelisted once
                    creds = flow.run_local_server(port=GOOGLE_CALENDAR_SETTINGS.OAUTH_REDIRECT_PORT)
                with open(self.token_file, "w") as token:
                    token.write(creds.to_json())

            self.service = build("calendar", GOOGLE_CALENDAR_SETTINGS.API_VERSION, credentials=creds)

        except FileNotFoundError:
            logger.error(f"Credentials file not found: {self.credentials_file}")
            self.service = None
        except Exception as e:
            logger.error(f"Failed to initialize Google Calendar API service: {str(e)}")
            self.service = None

    def _require_service(self):
        if self.service is None:
            raise CalendarProviderError("Google Calendar service is not available")
        return self.service

    async def list_events(self, time_min: datetime, time_max: datetime) -> List[Dict[str, Any]]:
        """
        Retrieve Google Calendar events between specified instants.

        Args:
            time_min: Lower bound (inclusive)
            time_max: Upper bound (exclusive)

        Returns:
            Raw Google Calendar event payloads
        """
        service = self._require_service()
        request = service.events().list(
            calendarId=self.calendar_id,
            timeMin=to_utc_iso(time_min),
            timeMax=to_utc_iso(time_max),
            maxResults=CALENDAR_SETTINGS.SYNC_MAX_RESULTS,
            singleEvents=True,
            orderBy="startTime",
        )
        try:
            result = await asyncio.to_thread(request.execute)
        except (HttpError, GoogleAuthError, OSError) as e:
            raise CalendarProviderError(f"Listing events failed: {e}") from e
        return result.get("items", [])

    async def insert_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create an event and return the provider's stored copy."""
        service = self._require_service()
        request = service.events().insert(calendarId=self.calendar_id, body=payload)
        try:
            return await asyncio.to_thread(request.execute)
        except (HttpError, GoogleAuthError, OSError) as e:
            raise CalendarProviderError(f"Creating event failed: {e}") from e

    async def delete_event(self, provider_event_id: str) -> DeleteOutcome:
        """Delete an event; an event that is already gone counts as deleted."""
        service = self._require_service()
        request = service.events().delete(calendarId=self.calendar_id, eventId=provider_event_id)
        try:
            await asyncio.to_thread(request.execute)
        except HttpError as e:
            if e.resp.status in GOOGLE_CALENDAR_SETTINGS.NOT_FOUND_STATUSES:
                return DeleteOutcome.NOT_FOUND
            raise CalendarProviderError(f"Deleting event {provider_event_id} failed: {e}") from e
        except (GoogleAuthError, OSError) as e:
            # Socket errors, timeouts and token refresh failures
            raise CalendarProviderError(f"Deleting event {provider_event_id} failed: {e}") from e
        return DeleteOutcome.DELETED


class InMemoryCalendarProvider:
    """Process-local calendar speaking the same payloads as Google."""

    def __init__(self, events: Optional[List[Dict[str, Any]]] = None, timezone: str = "UTC"):
        self.timezone = timezone
        self._events: Dict[str, Dict[str, Any]] = {}
        for event in events or []:
            stored = dict(event)
            stored.setdefault("id", self._new_id())
            self._events[stored["id"]] = stored

    @staticmethod
    def _new_id() -> str:
        return f"evt_{uuid.uuid4().hex[:12]}"

    async def list_events(self, time_min: datetime, time_max: datetime) -> List[Dict[str, Any]]:
        items = []
        for event in self._events.values():
            start, _ = parse_google_calendar_datetime(event.get("start"), self.timezone)
            if start is not None and time_min <= start < time_max:
                items.append(dict(event))
        return items

    async def insert_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        event = dict(payload)
        event["id"] = self._new_id()
        event["status"] = "confirmed"
        event["htmlLink"] = f"https://calendar.google.com/calendar/event?eid={event['id']}"
        self._events[event["id"]] = event
        return dict(event)

    async def delete_event(self, provider_event_id: str) -> DeleteOutcome:
        if self._events.pop(provider_event_id, None) is None:
            return DeleteOutcome.NOT_FOUND
        return DeleteOutcome.DELETED

    def __len__(self) -> int:
        return len(self._events)
