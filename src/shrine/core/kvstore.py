"""
Key-value store with per-key expiry.

The gateway keeps two kinds of short-lived state: rate buckets
(``rate:{pubkey}:{window}``) and duplicate markers (``seen:{event id}``).
Both only need ``get`` and ``put`` with a TTL, so any store that offers
those two operations can back them. [MemoryStore][shrine.core.kvstore.MemoryStore]
is the in-process implementation used by default and in tests.

Note:
    Operations are not atomic across ``get`` and ``put``. Two concurrent
    admissions for the same key may both read the same value; callers
    accept that over-admission.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Async string store with expiring keys."""

    async def get(self, key: str) -> str | None:
        """Return the value for *key*, or ``None`` if absent or expired."""
        ...

    async def put(self, key: str, value: str, *, ttl: float | None = None) -> None:
        """Store *value* under *key*, expiring after *ttl* seconds if given."""
        ...


class MemoryStore:
    """In-process [KeyValueStore][shrine.core.kvstore.KeyValueStore].

    Expired keys are dropped lazily on access and by
    [purge_expired()][shrine.core.kvstore.MemoryStore.purge_expired].

    Args:
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}

    def __len__(self) -> int:
        return len(self._data)

    async def get(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    async def put(self, key: str, value: str, *, ttl: float | None = None) -> None:
        if ttl is not None and ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        expires_at = self._clock() + ttl if ttl is not None else None
        self._data[key] = (value, expires_at)

    def purge_expired(self) -> int:
        """Drop every expired key and return how many were removed."""
        now = self._clock()
        expired = [
            key for key, (_, expires_at) in self._data.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._data[key]
        return len(expired)
