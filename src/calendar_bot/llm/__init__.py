"""LLM processing: calendar event extraction via Gemini.

Public API:
    get_extractor().extract_events(text) -> list[ExtractedEvent]
        Schema-constrained extraction with retries, timeouts, caching and a
        free-text fallback.
"""

from calendar_bot.llm.client import get_gemini_client, reset_client
from calendar_bot.llm.processor import EventExtractor, get_extractor, reset_extractor
from calendar_bot.llm.retry import RetryOutcome, RetryPolicy
from calendar_bot.llm.schemas import LLMEvent

__all__ = [
    "EventExtractor",
    "LLMEvent",
    "RetryOutcome",
    "RetryPolicy",
    "get_extractor",
    "get_gemini_client",
    "reset_client",
    "reset_extractor",
]
