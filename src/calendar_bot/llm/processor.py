"""LLM processor: free-form message text -> ExtractedEvents via Gemini.

Wires together the schema, client, prompt, parsing and retry modules.
Every Gemini call goes through one RetryPolicy (bounded retries with
backoff, per-attempt deadline) and a shared TTL response cache keyed by
operation and input text.

Failure handling for event extraction:
1. Structured call fails transiently or returns unparsable text -> legacy
   free-form prompt.
2. Legacy call fails or nothing parses -> empty list.
3. Structured call fails with a non-retryable error -> ExtractionFatalError.
"""

import hashlib
import logging
import re
from dataclasses import replace

from google import genai
from google.genai import types

from calendar_bot.cache import TTLStore
from calendar_bot.config import get_settings
from calendar_bot.cost import extract_usage, log_usage
from calendar_bot.exceptions import ExtractionFatalError
from calendar_bot.llm.client import get_gemini_client
from calendar_bot.llm.parsing import parse_json_array, parse_legacy_response
from calendar_bot.llm.prompts import (
    GEMINI_LITE_MODEL,
    GEMINI_MODEL,
    SUMMARY_MAX_CHARS,
    TITLE_MAX_CHARS,
    build_extract_system_prompt,
    build_extract_user_content,
    build_legacy_prompt,
    build_meeting_prompt,
    build_summary_prompt,
    build_title_prompt,
)
from calendar_bot.llm.retry import RetryOutcome, RetryPolicy
from calendar_bot.llm.schemas import EVENT_LIST_SCHEMA
from calendar_bot.models.event import ExtractedEvent, coerce_events

logger = logging.getLogger(__name__)

# Messages shorter than this cannot describe an event; skip the API call
MIN_EXTRACT_LENGTH = 10

# The model sometimes answers in words instead of returning nothing
_NEGATIVE_ANSWER = re.compile(
    r"(?:none(?: found)?|not found|n/?a|no(?: online)? meeting(?: (?:details|info|information))?(?: found)?)",
    re.IGNORECASE,
)


def cache_key(operation: str, *parts: str | None) -> str:
    """Content-derived cache key: operation name plus a digest of the inputs."""
    digest = hashlib.sha256("\x1f".join(p or "" for p in parts).encode("utf-8")).hexdigest()
    return f"{operation}:{digest[:32]}"


def truncate_summary(text: str, limit: int = SUMMARY_MAX_CHARS) -> str:
    """Hard-truncate to ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def is_negative_answer(answer: str) -> bool:
    """True if the model's answer means "nothing found"."""
    normalized = answer.strip().strip(".!\"'`*").strip()
    return not normalized or _NEGATIVE_ANSWER.fullmatch(normalized) is not None


class EventExtractor:
    """Gemini-backed extraction, summarization and title generation."""

    def __init__(
        self,
        client: genai.Client,
        cache: TTLStore | None = None,
        policy: RetryPolicy | None = None,
        legacy_policy: RetryPolicy | None = None,
    ):
        self._client = client
        self._cache = cache if cache is not None else TTLStore(ttl=1800, maxsize=256)
        self._policy = policy or RetryPolicy()
        # Single attempt so the fallback still fits the pipeline deadline
        self._legacy_policy = legacy_policy or replace(self._policy, max_attempts=1)

    @property
    def extraction_budget_seconds(self) -> float:
        """Worst-case duration of ``extract_events``: primary retries plus the fallback."""
        return self._policy.worst_case_seconds + self._legacy_policy.worst_case_seconds

    async def _generate(
        self,
        operation: str,
        model: str,
        contents: str,
        config: types.GenerateContentConfig,
    ) -> str:
        response = await self._client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=config,
        )
        log_usage(operation, model, extract_usage(response, model))
        return response.text or ""

    async def _call(
        self,
        operation: str,
        model: str,
        contents: str,
        config: types.GenerateContentConfig,
        policy: RetryPolicy | None = None,
    ) -> RetryOutcome[str]:
        return await (policy or self._policy).run(
            lambda: self._generate(operation, model, contents, config),
            operation,
        )

    async def extract_events(self, text: str) -> list[ExtractedEvent]:
        """Extract calendar events from a chat message.

        Never raises for transient AI failures or unparsable output; those
        yield an empty list.

        Raises:
            ExtractionFatalError: The structured call failed with a
                non-retryable error (authentication, invalid request).
        """
        if len(text.strip()) < MIN_EXTRACT_LENGTH:
            return []

        key = cache_key("extract", text)
        cached = self._cache.get(key)
        if cached is not None:
            logger.info("Extraction cache hit (%d events)", len(cached))
            return list(cached)

        outcome = await self._call(
            "extract",
            GEMINI_MODEL,
            build_extract_user_content(text),
            types.GenerateContentConfig(
                system_instruction=build_extract_system_prompt(),
                response_mime_type="application/json",
                response_schema=EVENT_LIST_SCHEMA,
                temperature=0.2,
                top_p=0.8,
            ),
        )
        if not outcome.ok and not outcome.transient:
            raise ExtractionFatalError("extract", outcome.error) from outcome.error

        raw = parse_json_array(outcome.value) if outcome.ok else None
        if raw is None:
            logger.warning("Structured extraction unusable, falling back to legacy prompt")
            raw = await self._extract_legacy(text)
            if raw is None:
                return []

        events = coerce_events(raw)
        self._cache.set(key, events)
        logger.info("Extracted %d event(s)", len(events))
        return list(events)

    async def _extract_legacy(self, text: str) -> list | None:
        """Schema-free extraction. Returns None when the call or every parse fails."""
        outcome = await self._call(
            "extract_legacy",
            GEMINI_MODEL,
            build_legacy_prompt(text),
            types.GenerateContentConfig(
                temperature=0.2,
                top_p=0.8,
                max_output_tokens=1024,
            ),
            self._legacy_policy,
        )
        if not outcome.ok:
            return None
        parsed = parse_legacy_response(outcome.value)
        if parsed is None:
            logger.warning("Legacy extraction returned no parsable JSON array")
        return parsed

    async def summarize(self, text: str) -> str:
        """Summarize ``text`` to roughly SUMMARY_MAX_CHARS; short text passes through."""
        if len(text) <= SUMMARY_MAX_CHARS:
            return text

        key = cache_key("summary", text)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        outcome = await self._call(
            "summary",
            GEMINI_LITE_MODEL,
            build_summary_prompt(text),
            types.GenerateContentConfig(
                temperature=0.4,
                top_p=0.9,
                max_output_tokens=100,
            ),
        )
        summary = (outcome.value or "").strip()
        if not summary:
            return truncate_summary(text)

        self._cache.set(key, summary)
        return summary

    async def generate_title(self, text: str, hint: str | None = None) -> str:
        """Generate a short calendar title. Falls back to ``hint`` (or "") on failure."""
        key = cache_key("title", text, hint)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        outcome = await self._call(
            "title",
            GEMINI_LITE_MODEL,
            build_title_prompt(text, hint),
            types.GenerateContentConfig(
                temperature=0.5,
                top_p=0.9,
                max_output_tokens=40,
            ),
        )
        title = (outcome.value or "").strip().strip("\"'`").strip()
        if not title:
            return hint or ""

        title = title.splitlines()[0][:TITLE_MAX_CHARS]
        self._cache.set(key, title)
        return title

    async def extract_meeting_info(self, text: str) -> str:
        """Copy online meeting details (URL, ID, passcode) out of ``text``.

        Best effort: returns "" on failure or when the model answers with a
        negation such as "none" or "not found".
        """
        key = cache_key("meeting", text)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        outcome = await self._call(
            "meeting",
            GEMINI_LITE_MODEL,
            build_meeting_prompt(text),
            types.GenerateContentConfig(
                temperature=0.0,
                max_output_tokens=200,
            ),
        )
        if not outcome.ok:
            return ""

        answer = (outcome.value or "").strip()
        if is_negative_answer(answer):
            answer = ""
        self._cache.set(key, answer)
        return answer


_extractor: EventExtractor | None = None


def get_extractor() -> EventExtractor:
    """Return the process-wide extractor, built from settings on first use."""
    global _extractor
    if _extractor is None:
        settings = get_settings()
        _extractor = EventExtractor(
            client=get_gemini_client(),
            cache=TTLStore(
                ttl=settings.response_cache_ttl_seconds,
                maxsize=settings.response_cache_size,
            ),
            policy=RetryPolicy(timeout_seconds=settings.ai_timeout_seconds),
        )
    return _extractor


def reset_extractor() -> None:
    """Reset the cached extractor instance. Used for testing."""
    global _extractor
    _extractor = None
