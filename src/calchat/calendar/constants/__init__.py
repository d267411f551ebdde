"""
Calendar Accessor Constants
"""

from calchat.config import settings


class CALENDAR_SETTINGS:
    """Calendar settings"""
    DEFAULT_CALENDAR_SERVICE = settings.CALENDAR_BACKEND
    PRIMARY_CALENDAR_ID = settings.GOOGLE_CALENDAR_ID
    TIMEZONE = settings.CALENDAR_TIMEZONE
    SYNC_WINDOW_DAYS = 365  # provider refresh covers one year back and forward
    SYNC_MAX_RESULTS = 2500


class GOOGLE_CALENDAR_SETTINGS:
    """Google Calendar settings"""
    SCOPES = ["https://www.googleapis.com/auth/calendar.events"]
    API_VERSION = "v3"
    CREDENTIALS_FILE = settings.GOOGLE_CREDENTIALS_FILE
    TOKEN_FILE = settings.GOOGLE_TOKEN_FILE
    OAUTH_REDIRECT_PORT = 8006
    NOT_FOUND_STATUSES = (404, 410)
