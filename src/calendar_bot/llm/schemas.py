"""LLM response schema for Gemini structured output.

Only ``title`` is required. The processor parses the raw response text
itself (rather than trusting ``response.parsed``) so malformed output can
fall through to the legacy path, and normalizes items via ``coerce_events``.
"""

from pydantic import BaseModel, Field


class LLMEvent(BaseModel):
    """One event as Gemini is asked to return it."""

    title: str = Field(description="Short title of the event or meeting")
    date: str | None = Field(
        default=None, description="Event date in YYYY-MM-DD format"
    )
    start_time: str | None = Field(
        default=None, description="Start time in 24-hour HH:MM format"
    )
    end_time: str | None = Field(
        default=None, description="End time in 24-hour HH:MM format"
    )
    location: str | None = Field(
        default=None,
        description="Physical place only (room, building, address). Never a URL.",
    )
    description: str | None = Field(
        default=None,
        description="Details of the event, including any online meeting URL",
    )


# Gemini accepts a list type as the top-level response schema
EVENT_LIST_SCHEMA = list[LLMEvent]
