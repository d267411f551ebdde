from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_ENV: str = "development"
    APP_PORT: int = 8005

    # LLM Configuration (can be changed easily)
    LLM_API_KEY: str = ""
    LLM_PROVIDER: str = "openai"  # openai, anthropic, groq, ollama, etc.
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_MAX_TOKENS: int = 500

    # Calendar
    CALENDAR_BACKEND: str = "memory"  # memory or google
    CALENDAR_TIMEZONE: str = "UTC"
    GOOGLE_CREDENTIALS_FILE: str = "google_calendar_credentials.json"
    GOOGLE_TOKEN_FILE: str = "google_calendar_token.json"
    GOOGLE_CALENDAR_ID: str = "primary"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()


def validate_required_keys():
    """Validate that all required API keys are present"""
    required_keys = [
        ("LLM_API_KEY", settings.LLM_API_KEY),
    ]
    # Local providers run without a key
    if settings.LLM_PROVIDER == "ollama":
        required_keys = []

    missing_keys = []
    for key_name, key_value in required_keys:
        if not key_value or key_value.strip() == "":
            missing_keys.append(key_name)

    if settings.CALENDAR_BACKEND not in ("memory", "google"):
        raise ValueError(
            f"Unsupported CALENDAR_BACKEND '{settings.CALENDAR_BACKEND}'. "
            f"Use 'memory' or 'google'."
        )

    if missing_keys:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing_keys)}. "
            f"Please check your .env file."
        )
