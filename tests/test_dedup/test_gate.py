"""Tests for the two-tier dedup gate."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from google.api_core.exceptions import ServiceUnavailable
from google.auth.exceptions import DefaultCredentialsError

from calendar_bot.cache import TTLStore
from calendar_bot.dedup.gate import DedupGate, get_dedup_gate, reset_gate
from calendar_bot.dedup.store import MemoryClaimStore
from calendar_bot.models.reaction import ReactionKey

FIXED_NOW = datetime(2025, 6, 20, 12, 0, tzinfo=timezone.utc)


class FakeTimer:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _key(reaction: str = "calendar", ts: str = "1718000000.000100") -> ReactionKey:
    return ReactionKey(channel_id="C123", message_ts=ts, reaction=reaction)


@pytest.fixture()
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture()
def store() -> MemoryClaimStore:
    return MemoryClaimStore()


@pytest.fixture()
def gate(store, timer) -> DedupGate:
    return DedupGate(
        store,
        TTLStore(ttl=600, maxsize=100, timer=timer),
        TTLStore(ttl=60, maxsize=100, timer=timer),
        clock=lambda: FIXED_NOW,
    )


async def test_first_signal_is_processed_and_claimed(gate, store):
    assert await gate.should_process(_key(), "U1") is True

    claim = store.get(_key())
    assert claim is not None
    assert claim.owner == "U1"
    assert claim.claimed_at == FIXED_NOW


async def test_repeat_signal_is_suppressed(gate):
    assert await gate.should_process(_key(), "U1") is True
    assert await gate.should_process(_key(), "U1") is False


async def test_concurrent_deliveries_are_processed_exactly_once(gate):
    results = await asyncio.gather(*(gate.should_process(_key(), "U1") for _ in range(10)))

    assert results.count(True) == 1


async def test_claim_survives_cache_expiry(gate, timer):
    """After the local cache forgets a key, the durable claim still rejects it."""
    assert await gate.should_process(_key(), "U1") is True

    timer.now = 10_000
    assert await gate.should_process(_key(), "U2") is False


async def test_cache_hit_skips_store(timer):
    store = MagicMock()
    store.claim = AsyncMock(return_value=True)
    gate = DedupGate(store, TTLStore(ttl=600, maxsize=100, timer=timer))

    assert await gate.should_process(_key(), "U1") is True
    assert await gate.should_process(_key(), "U1") is False
    assert store.claim.await_count == 1


async def test_user_window_suppresses_second_calendar_emoji(gate):
    """Same person, same message, different calendar emoji within the window."""
    assert await gate.should_process(_key("calendar"), "U1") is True
    assert await gate.should_process(_key("date"), "U1") is False


async def test_user_window_expires(gate, timer):
    assert await gate.should_process(_key("calendar"), "U1") is True

    timer.now = 61
    assert await gate.should_process(_key("date"), "U1") is True


async def test_other_users_are_not_windowed(gate):
    assert await gate.should_process(_key("calendar"), "U1") is True
    assert await gate.should_process(_key("date"), "U2") is True


async def test_store_outage_fails_open(timer, caplog):
    store = MagicMock()
    store.claim = AsyncMock(side_effect=ServiceUnavailable("firestore down"))
    gate = DedupGate(store, TTLStore(ttl=600, maxsize=100, timer=timer))

    with caplog.at_level("WARNING", logger="calendar_bot.dedup.gate"):
        assert await gate.should_process(_key(), "U1") is True

    assert "Dedup store unavailable" in caplog.text
    # The local cache still protects against an immediate redelivery
    assert await gate.should_process(_key(), "U1") is False


async def test_slow_store_fails_open(timer):
    async def _hang(_claim):
        await asyncio.sleep(5)
        return True

    store = MagicMock()
    store.claim = AsyncMock(side_effect=_hang)
    gate = DedupGate(store, TTLStore(ttl=600, maxsize=100, timer=timer), timeout_seconds=0.01)

    assert await gate.should_process(_key(), "U1") is True


async def test_exhausted_transaction_retries_fail_open(timer, caplog):
    """Firestore gives up on contention with a bare ValueError; the gate still processes."""
    store = MagicMock()
    store.claim = AsyncMock(side_effect=ValueError("Failed to commit transaction in 5 attempts."))
    gate = DedupGate(store, TTLStore(ttl=600, maxsize=100, timer=timer))

    with caplog.at_level("ERROR", logger="calendar_bot.dedup.gate"):
        assert await gate.should_process(_key(), "U1") is True

    assert "Unexpected dedup store failure" in caplog.text


async def test_unbuildable_store_fails_open(timer):
    """Missing credentials when the store is first built do not block processing."""
    factory = MagicMock(side_effect=DefaultCredentialsError("no credentials"))
    gate = DedupGate(None, TTLStore(ttl=600, maxsize=100, timer=timer), store_factory=factory)

    assert await gate.should_process(_key(ts="1.1"), "U1") is True
    assert await gate.should_process(_key(ts="2.2"), "U1") is True
    # A failed build is retried for the next signal
    assert factory.call_count == 2


async def test_store_is_built_once_on_first_use(store, timer):
    factory = MagicMock(return_value=store)
    gate = DedupGate(None, TTLStore(ttl=600, maxsize=100, timer=timer), store_factory=factory)
    factory.assert_not_called()

    assert await gate.should_process(_key(ts="1.1"), "U1") is True
    assert await gate.should_process(_key(ts="2.2"), "U1") is True

    factory.assert_called_once()
    assert store.get(_key(ts="1.1")) is not None


async def test_readonly_mode_checks_without_writing(store, timer):
    gate = DedupGate(store, TTLStore(ttl=600, maxsize=100, timer=timer), readonly=True)

    assert await gate.should_process(_key(), "U1") is True
    assert store.get(_key()) is None


async def test_readonly_mode_honors_existing_claims(store, timer):
    writer = DedupGate(store, TTLStore(ttl=600, maxsize=100, timer=timer))
    reader = DedupGate(store, TTLStore(ttl=600, maxsize=100, timer=timer), readonly=True)

    assert await writer.should_process(_key(), "U1") is True
    assert await reader.should_process(_key(), "U1") is False


# -- get_dedup_gate --


def test_get_dedup_gate_is_cached_and_resettable():
    settings = MagicMock()
    settings.firestore_enabled = False
    settings.dedup_cache_ttl_seconds = 600
    settings.dedup_cache_size = 100
    settings.user_window_seconds = 60
    settings.firestore_readonly = False
    settings.firestore_timeout_seconds = 6.0

    reset_gate()
    try:
        with (
            patch("calendar_bot.dedup.gate.get_settings", return_value=settings),
            patch("calendar_bot.dedup.store.get_settings", return_value=settings),
        ):
            first = get_dedup_gate()
            assert get_dedup_gate() is first
            reset_gate()
            assert get_dedup_gate() is not first
    finally:
        reset_gate()
