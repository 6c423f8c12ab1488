from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class _CacheEntry:
    value: Decimal
    stored_at: float


class PriceCache:
    """Insert-if-absent map of current USD prices keyed by price-feed id.

    With ``ttl_seconds=None`` entries never expire, which suits a
    short-lived process. Long-running callers should pass a TTL.

    Not thread-safe: share one instance only among coroutines on a
    single event loop.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive when set")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}

    def get(self, key: str) -> Decimal | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.ttl_seconds is not None and (
            self._clock() - entry.stored_at >= self.ttl_seconds
        ):
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Decimal) -> None:
        self._entries[key] = _CacheEntry(value=value, stored_at=self._clock())

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
