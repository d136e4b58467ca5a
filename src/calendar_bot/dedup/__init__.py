"""Reaction deduplication: in-process cache in front of a durable claim log.

Public API:
    get_dedup_gate().should_process(key, actor_id) -> bool
"""

from calendar_bot.dedup.gate import DedupGate, get_dedup_gate, reset_gate
from calendar_bot.dedup.store import ClaimStore, FirestoreClaimStore, MemoryClaimStore

__all__ = [
    "ClaimStore",
    "DedupGate",
    "FirestoreClaimStore",
    "MemoryClaimStore",
    "get_dedup_gate",
    "reset_gate",
]
