"""
Application-wide constants
"""


class APP_SETTINGS:
    """FastAPI application metadata"""
    APP_NAME = "CalChat"
    VERSION = "1.0.0"
    DESCRIPTION = "Chat with your calendar: ask about, create and delete events in plain language"


class RATE_LIMIT_SETTINGS:
    """Per-user chat rate limiting"""
    REQUESTS = 30  # requests per window
    WINDOW_SECONDS = 60
