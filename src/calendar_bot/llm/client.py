"""Gemini client singleton with async support.

The HTTP timeout is set slightly above the per-attempt deadline enforced by
RetryPolicy, so the client-side race always wins and the transport never
raises its own timeout first. No HttpRetryOptions: tenacity owns retries.
"""

from google import genai
from google.genai import types

from calendar_bot.config import get_settings

_HTTP_TIMEOUT_SLACK_MS = 5_000

_client: genai.Client | None = None


def get_gemini_client() -> genai.Client:
    """Return the cached Gemini client, creating it from settings on first call."""
    global _client
    if _client is None:
        settings = get_settings()
        timeout_ms = int(settings.ai_timeout_seconds * 1000) + _HTTP_TIMEOUT_SLACK_MS
        _client = genai.Client(
            api_key=settings.gemini_api_key,
            http_options=types.HttpOptions(timeout=timeout_ms),
        )
    return _client


def reset_client() -> None:
    """Reset the cached client instance. Used for testing."""
    global _client
    _client = None
