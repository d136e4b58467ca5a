"""Durable claim stores for reaction deduplication.

FirestoreClaimStore is the production arbiter: a transactional read followed
by a conditional write guarantees at most one Claim per ReactionKey across
every process instance. MemoryClaimStore offers the same contract inside a
single process for local development and tests.
"""

import asyncio
import logging
from typing import Protocol

from google.cloud import firestore

from calendar_bot.config import get_settings
from calendar_bot.exceptions import ClaimStoreUnavailableError
from calendar_bot.models.reaction import Claim, ReactionKey

logger = logging.getLogger(__name__)


class ClaimStore(Protocol):
    """Atomic check-and-set over the dedup log."""

    async def claim(self, claim: Claim) -> bool:
        """Create ``claim`` if its key is unclaimed. Returns True when created."""
        ...

    async def exists(self, key: ReactionKey) -> bool:
        """Return True if a claim for ``key`` exists. Read-only."""
        ...


@firestore.async_transactional
async def _claim_in_transaction(
    transaction: firestore.AsyncTransaction,
    doc_ref: firestore.AsyncDocumentReference,
    document: dict,
) -> bool:
    """Read-then-write inside one transaction. Firestore retries on contention."""
    snapshot = await doc_ref.get(transaction=transaction)
    if snapshot.exists:
        return False
    transaction.set(doc_ref, document)
    return True


class FirestoreClaimStore:
    """Claim log stored as one Firestore document per ReactionKey."""

    def __init__(self, client: firestore.AsyncClient, collection: str = "processedReactions"):
        self._client = client
        self._collection = collection

    def _document(self, key: ReactionKey) -> firestore.AsyncDocumentReference:
        return self._client.collection(self._collection).document(key.document_id)

    async def claim(self, claim: Claim) -> bool:
        doc_ref = self._document(claim.reaction_key)
        transaction = self._client.transaction()
        try:
            created = await _claim_in_transaction(transaction, doc_ref, claim.to_document())
        except ValueError as exc:
            # async_transactional gives up on contention with a bare ValueError
            raise ClaimStoreUnavailableError(
                f"Claim transaction for {claim.reaction_key.document_id} did not commit"
            ) from exc
        logger.debug(
            "Firestore claim %s for %s",
            "created" if created else "exists",
            claim.reaction_key.document_id,
        )
        return created

    async def exists(self, key: ReactionKey) -> bool:
        snapshot = await self._document(key).get()
        return snapshot.exists


class MemoryClaimStore:
    """In-process claim log. Safe across coroutines, not across processes."""

    def __init__(self):
        self._claims: dict[ReactionKey, Claim] = {}
        self._lock = asyncio.Lock()

    async def claim(self, claim: Claim) -> bool:
        async with self._lock:
            if claim.reaction_key in self._claims:
                return False
            self._claims[claim.reaction_key] = claim
            return True

    async def exists(self, key: ReactionKey) -> bool:
        return key in self._claims

    def get(self, key: ReactionKey) -> Claim | None:
        """Return the stored claim for ``key``, if any."""
        return self._claims.get(key)


def build_claim_store() -> ClaimStore:
    """Create the claim store selected by settings.

    Firestore credentials come from the ambient Google environment
    (Cloud Run service account or GOOGLE_APPLICATION_CREDENTIALS).
    """
    settings = get_settings()
    if not settings.firestore_enabled:
        logger.warning("Firestore disabled; dedup claims are process-local only")
        return MemoryClaimStore()
    client = firestore.AsyncClient(project=settings.firestore_project)
    return FirestoreClaimStore(client, collection=settings.firestore_collection)
