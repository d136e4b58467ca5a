"""Two-tier duplicate suppression for reaction signals.

Slack may deliver the same ``reaction_added`` event more than once, and more
than one Cloud Run instance may receive it. The gate answers "should this
signal be processed?" with:

1. An in-process TTL cache (fast path, no I/O).
2. A per-user window that swallows a second calendar emoji from the same
   person on the same message.
3. An atomic claim in the durable store (the real arbiter).

Store failures fail open: the signal is processed and the degradation is
logged, because missing an event is worse than posting it twice. The store
itself is built on first use inside the same guard, so missing credentials
at startup degrade the gate instead of crashing the pipeline.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError

from calendar_bot.cache import TTLStore
from calendar_bot.config import get_settings
from calendar_bot.dedup.store import ClaimStore, build_claim_store
from calendar_bot.exceptions import ClaimStoreUnavailableError
from calendar_bot.models.reaction import Claim, ReactionKey

logger = logging.getLogger(__name__)

# Outages the gate expects to see in production; anything else is logged as a bug
_STORE_ERRORS = (
    GoogleAPIError,
    GoogleAuthError,
    ClaimStoreUnavailableError,
    TimeoutError,
    OSError,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DedupGate:
    """Decides whether a reaction signal is seen for the first time."""

    def __init__(
        self,
        store: ClaimStore | None,
        cache: TTLStore,
        user_window: TTLStore | None = None,
        *,
        store_factory: Callable[[], ClaimStore] | None = None,
        readonly: bool = False,
        timeout_seconds: float = 6.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self._store_factory = store_factory
        self._cache = cache
        self._user_window = user_window
        self._readonly = readonly
        self._timeout = timeout_seconds
        self._clock = clock
        if readonly:
            logger.warning(
                "Dedup gate is read-only: concurrent deliveries of one reaction "
                "may both be processed until a claim is written elsewhere"
            )

    async def should_process(self, key: ReactionKey, actor_id: str = "") -> bool:
        """Return True exactly once per key; False for every duplicate.

        Args:
            key: Channel, message timestamp and reaction name.
            actor_id: Slack user who added the reaction. Recorded on the claim
                and used for the per-user suppression window.
        """
        if key in self._cache:
            logger.info("Duplicate reaction suppressed (cache): %s", key.document_id)
            return False

        user_key = (key.channel_id, key.message_ts, actor_id)
        if actor_id and self._user_window is not None and user_key in self._user_window:
            logger.info(
                "Duplicate reaction suppressed (user window): %s by %s",
                key.document_id,
                actor_id,
            )
            return False

        now = self._clock()
        try:
            async with asyncio.timeout(self._timeout):
                duplicate = await self._check_store(key, actor_id, now)
        except _STORE_ERRORS:
            logger.warning(
                "Dedup store unavailable, processing %s anyway",
                key.document_id,
                exc_info=True,
            )
            duplicate = False
        except Exception:
            logger.error(
                "Unexpected dedup store failure, processing %s anyway",
                key.document_id,
                exc_info=True,
            )
            duplicate = False

        self._cache.set(key, now)
        if duplicate:
            logger.info("Duplicate reaction suppressed (store): %s", key.document_id)
            return False

        if actor_id and self._user_window is not None:
            self._user_window.set(user_key, now)
        return True

    async def _check_store(self, key: ReactionKey, actor_id: str, now: datetime) -> bool:
        """Return True if the store already holds a claim for ``key``."""
        store = self._get_store()
        if self._readonly:
            return await store.exists(key)
        claim = Claim(reaction_key=key, owner=actor_id, claimed_at=now)
        created = await store.claim(claim)
        return not created

    def _get_store(self) -> ClaimStore:
        """Build the store on first use. A failed build is retried on the next signal."""
        if self._store is None:
            self._store = (self._store_factory or build_claim_store)()
        return self._store


_gate: DedupGate | None = None


def get_dedup_gate() -> DedupGate:
    """Return the process-wide gate, building it from settings on first use."""
    global _gate
    if _gate is None:
        settings = get_settings()
        _gate = DedupGate(
            store=None,
            cache=TTLStore(
                ttl=settings.dedup_cache_ttl_seconds,
                maxsize=settings.dedup_cache_size,
            ),
            user_window=TTLStore(
                ttl=settings.user_window_seconds,
                maxsize=settings.dedup_cache_size,
            ),
            readonly=settings.firestore_readonly,
            timeout_seconds=settings.firestore_timeout_seconds,
        )
    return _gate


def reset_gate() -> None:
    """Reset the cached gate instance. Used for testing."""
    global _gate
    _gate = None
