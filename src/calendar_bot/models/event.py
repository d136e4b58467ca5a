"""Extracted event record and boundary normalization of raw AI output."""

import logging
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class ExtractedEvent(BaseModel):
    """One calendar-worthy event parsed from free text.

    Every field is optional because the free-text fallback path gives no
    schema guarantees. Values are kept as loose strings; the link encoder
    tolerates malformed dates and times.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str | None = None
    date: str | None = None  # YYYY-MM-DD
    start_time: str | None = Field(
        default=None, validation_alias=AliasChoices("start_time", "startTime")
    )  # HH:MM or HH:MM:SS
    end_time: str | None = Field(
        default=None, validation_alias=AliasChoices("end_time", "endTime")
    )
    location: str | None = None
    description: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_loose_value(cls, value: Any) -> str | None:
        """Coerce scalars to stripped strings; blanks and containers become None."""
        if value is None or isinstance(value, (dict, list)):
            return None
        text = str(value).strip()
        return text or None


def coerce_events(raw: Any) -> list[ExtractedEvent]:
    """Normalize a parsed JSON array from the AI backend into ExtractedEvents.

    Non-object items are dropped. Order is preserved.
    """
    if not isinstance(raw, list):
        return []

    events = []
    for item in raw:
        if not isinstance(item, dict):
            logger.debug("Dropping non-object event item: %r", item)
            continue
        try:
            events.append(ExtractedEvent.model_validate(item))
        except ValidationError:
            logger.warning("Dropping malformed event item", exc_info=True)
    return events
