"""Async Slack client singleton.

The client retries rate-limited (HTTP 429) and dropped-connection calls on
its own, so notifier functions only ever see terminal errors.
"""

from slack_sdk.http_retry.builtin_async_handlers import (
    AsyncConnectionErrorRetryHandler,
    AsyncRateLimitErrorRetryHandler,
)
from slack_sdk.web.async_client import AsyncWebClient

from calendar_bot.config import get_settings

_client: AsyncWebClient | None = None


async def get_slack_client() -> AsyncWebClient:
    """Return the cached async Slack client, creating it from settings on first call."""
    global _client
    if _client is None:
        settings = get_settings()
        retries = max(0, settings.slack_max_retries)
        _client = AsyncWebClient(
            token=settings.slack_bot_token,
            retry_handlers=[
                AsyncRateLimitErrorRetryHandler(max_retry_count=retries),
                AsyncConnectionErrorRetryHandler(max_retry_count=retries),
            ],
        )
    return _client


def reset_client() -> None:
    """Reset the cached client instance. Used for testing."""
    global _client
    _client = None
