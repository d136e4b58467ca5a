"""Tests for the in-memory and Firestore claim stores."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from calendar_bot.dedup.store import (
    FirestoreClaimStore,
    MemoryClaimStore,
    build_claim_store,
)
from calendar_bot.exceptions import ClaimStoreUnavailableError
from calendar_bot.models.reaction import Claim, ReactionKey

KEY = ReactionKey(channel_id="C123", message_ts="1718000000.000100", reaction="calendar")
NOW = datetime(2025, 6, 20, 12, 0, tzinfo=timezone.utc)


def _claim(owner: str = "U1") -> Claim:
    return Claim(reaction_key=KEY, owner=owner, claimed_at=NOW)


# -- MemoryClaimStore --


async def test_memory_claim_is_created_once():
    store = MemoryClaimStore()

    assert await store.claim(_claim("U1")) is True
    assert await store.claim(_claim("U2")) is False
    assert store.get(KEY).owner == "U1"


async def test_memory_exists():
    store = MemoryClaimStore()
    assert await store.exists(KEY) is False

    await store.claim(_claim())

    assert await store.exists(KEY) is True


# -- FirestoreClaimStore --


def _firestore_client(exists: bool) -> MagicMock:
    snapshot = MagicMock()
    snapshot.exists = exists
    doc_ref = MagicMock()
    doc_ref.get = AsyncMock(return_value=snapshot)
    client = MagicMock()
    client.collection.return_value.document.return_value = doc_ref
    return client


async def test_firestore_exists_reads_document():
    client = _firestore_client(exists=True)
    store = FirestoreClaimStore(client, collection="processedReactions")

    assert await store.exists(KEY) is True
    client.collection.assert_called_with("processedReactions")
    client.collection.return_value.document.assert_called_with(
        "C123-1718000000.000100-calendar"
    )


async def test_firestore_claim_uses_transaction():
    client = _firestore_client(exists=False)
    store = FirestoreClaimStore(client)

    with patch(
        "calendar_bot.dedup.store._claim_in_transaction", new_callable=AsyncMock
    ) as mock_txn:
        mock_txn.return_value = True
        assert await store.claim(_claim()) is True

    transaction, doc_ref, document = mock_txn.call_args.args
    assert transaction is client.transaction.return_value
    assert doc_ref is client.collection.return_value.document.return_value
    assert document["processed"] is True
    assert document["user"] == "U1"
    assert document["processedAt"] == NOW


async def test_firestore_claim_contention_is_reported_as_unavailable():
    client = _firestore_client(exists=False)
    store = FirestoreClaimStore(client)

    with patch(
        "calendar_bot.dedup.store._claim_in_transaction",
        new_callable=AsyncMock,
        side_effect=ValueError("Failed to commit transaction in 5 attempts."),
    ):
        with pytest.raises(ClaimStoreUnavailableError):
            await store.claim(_claim())


# -- build_claim_store --


@patch("calendar_bot.dedup.store.get_settings")
def test_build_claim_store_without_firestore(mock_get_settings: MagicMock):
    mock_get_settings.return_value.firestore_enabled = False

    assert isinstance(build_claim_store(), MemoryClaimStore)


@patch("calendar_bot.dedup.store.firestore.AsyncClient")
@patch("calendar_bot.dedup.store.get_settings")
def test_build_claim_store_with_firestore(mock_get_settings: MagicMock, mock_client_cls: MagicMock):
    settings = mock_get_settings.return_value
    settings.firestore_enabled = True
    settings.firestore_project = "my-project"
    settings.firestore_collection = "claims"

    store = build_claim_store()

    assert isinstance(store, FirestoreClaimStore)
    mock_client_cls.assert_called_once_with(project="my-project")
