"""Slack reaction event and per-message posting context."""

from pydantic import BaseModel

from calendar_bot.models.reaction import ReactionKey


class ReactionEvent(BaseModel):
    """A ``reaction_added`` event on a message, with extracted fields (no raw payload)."""

    channel_id: str
    message_ts: str  # Slack message ts, e.g., "1234567890.123456"
    reaction: str
    user_id: str

    @property
    def key(self) -> ReactionKey:
        return ReactionKey(
            channel_id=self.channel_id,
            message_ts=self.message_ts,
            reaction=self.reaction,
        )


class MessageContext(BaseModel):
    """Where replies for one flagged message go, plus its source text and permalink."""

    channel_id: str
    message_ts: str
    text: str
    message_url: str
