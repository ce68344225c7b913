"""
Fixed-window admission limits per sender.

Each sender gets one counter per window, stored under
``rate:{sender}:{window index}`` with a TTL a little longer than the window.
A request is refused when the counter already holds ``max_events``.

The read and the write are separate store operations, so concurrent requests
from one sender can be admitted a few times past the ceiling. That
over-admission is accepted; the limiter is a brake, not a quota.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from shrine.core.exceptions import RateLimitedError, StoreError
from shrine.core.kvstore import KeyValueStore

from .configs import RateLimitConfig


class RateLimiter:
    """Count admissions per sender in fixed windows.

    Args:
        store: Backing [KeyValueStore][shrine.core.kvstore.KeyValueStore].
        config: Window length, ceiling and bucket TTL.
        clock: Wall-clock source used when ``now`` is not passed.
    """

    KEY_PREFIX = "rate"

    def __init__(
        self,
        store: KeyValueStore,
        config: RateLimitConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._config = config or RateLimitConfig()
        self._clock = clock

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    def bucket_key(self, sender: str, now: int) -> str:
        return f"{self.KEY_PREFIX}:{sender}:{now // self._config.window}"

    async def try_admit(self, sender: str, now: int | None = None) -> int:
        """Admit one request from *sender* and return its count in this window.

        Always admits when the limiter is disabled (returning ``0``).

        Raises:
            RateLimitedError: The sender already reached the ceiling.
            StoreError: The store failed.
        """
        if not self._config.enabled:
            return 0

        current = int(self._clock()) if now is None else now
        key = self.bucket_key(sender, current)

        try:
            stored = await self._store.get(key)
        except Exception as e:  # store backends raise their own error types
            raise StoreError() from e

        try:
            count = int(stored) if stored else 0
        except ValueError as e:
            raise StoreError() from e
        if count >= self._config.max_events:
            raise RateLimitedError()

        try:
            await self._store.put(key, str(count + 1), ttl=self._config.bucket_ttl)
        except Exception as e:  # store backends raise their own error types
            raise StoreError() from e
        return count + 1
