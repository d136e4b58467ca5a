"""Process-local TTL cache component shared by the dedup gate and the AI response cache.

Wraps ``cachetools.TTLCache`` behind a small get/set/sweep interface so the
eviction policy can be exercised in isolation with an injected timer.
Expired entries are invisible to ``get`` even before they are evicted;
cachetools purges expired entries on every write, and ``sweep`` forces a
purge on demand.
"""

import time
from collections.abc import Callable, Hashable
from typing import Any

from cachetools import TTLCache

_MISSING = object()


class TTLStore:
    """Bounded mapping whose entries expire ``ttl`` seconds after insertion."""

    def __init__(
        self,
        ttl: float,
        maxsize: int,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.maxsize = maxsize
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the live value for ``key`` or ``default`` when missing or expired."""
        return self._cache.get(key, default)

    def set(self, key: Hashable, value: Any) -> None:
        """Insert or replace ``key``. When full, the least recently used entry is evicted."""
        self._cache[key] = value

    def __contains__(self, key: Hashable) -> bool:
        return self._cache.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        return len(self._cache)

    def sweep(self) -> int:
        """Drop all expired entries now. Returns the number removed."""
        before = self._cache.currsize
        self._cache.expire()
        return before - self._cache.currsize

    def clear(self) -> None:
        """Remove every entry. Used for testing."""
        self._cache.clear()
