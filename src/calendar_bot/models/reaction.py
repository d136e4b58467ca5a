"""Dedup identity and durable claim records."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ReactionKey(BaseModel):
    """Identity of one "add this to my calendar" action."""

    model_config = ConfigDict(frozen=True)

    channel_id: str
    message_ts: str
    reaction: str

    @property
    def document_id(self) -> str:
        """Durable store document id, e.g. ``C123-1718000000.000100-calendar``."""
        return f"{self.channel_id}-{self.message_ts}-{self.reaction}"


class Claim(BaseModel):
    """Proof that a ReactionKey has begun processing. Never mutated or deleted."""

    reaction_key: ReactionKey
    owner: str
    claimed_at: datetime

    def to_document(self) -> dict:
        """Firestore document body for this claim."""
        return {
            "processed": True,
            "channel": self.reaction_key.channel_id,
            "timestamp": self.reaction_key.message_ts,
            "reaction": self.reaction_key.reaction,
            "user": self.owner,
            "processedAt": self.claimed_at,
        }
