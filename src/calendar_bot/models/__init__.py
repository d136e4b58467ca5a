"""Data models for the reaction-to-calendar pipeline."""

from calendar_bot.models.event import ExtractedEvent, coerce_events
from calendar_bot.models.reaction import Claim, ReactionKey
from calendar_bot.models.slack import MessageContext, ReactionEvent

__all__ = [
    "Claim",
    "ExtractedEvent",
    "MessageContext",
    "ReactionEvent",
    "ReactionKey",
    "coerce_events",
]
