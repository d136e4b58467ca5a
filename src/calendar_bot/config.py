"""Application configuration via pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Slack
    slack_bot_token: str = ""
    slack_signing_secret: str = ""
    slack_team_id: str = ""
    slack_max_retries: int = 2
    calendar_reactions: list[str] = [
        "calendar",
        "カレンダー",
        "calendar_spiral",
        "spiral_calendar_pad",
        "date",
        "カレンダーに入れる",
        "calendar-bot",
    ]

    # Gemini
    gemini_api_key: str = ""
    ai_timeout_seconds: float = 10.0
    pipeline_timeout_seconds: float = 45.0
    response_cache_ttl_seconds: int = 1800
    response_cache_size: int = 256

    # Firestore dedup log
    firestore_enabled: bool = True
    firestore_project: str | None = None
    firestore_collection: str = "processedReactions"
    firestore_readonly: bool = False
    firestore_timeout_seconds: float = 6.0
    dedup_cache_ttl_seconds: int = 600
    dedup_cache_size: int = 1000
    user_window_seconds: int = 60

    # Event posting
    max_events: int = 5
    batch_size: int = 3
    generate_titles: bool = False

    # App
    environment: str = "development"
    log_level: str = "INFO"
    port: int = 8080


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings. Lazy initialization to avoid import-time errors."""
    return Settings()
