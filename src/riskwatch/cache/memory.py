# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""In-process LRU cache backend with TTL expiry.

Used to memoize language-model classifications so re-running an analysis
within the TTL reproduces the same fallback verdict without another call.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable

from riskwatch.cache.base import CacheBackend

_DEFAULT_MAX_SIZE = 4096


class MemoryCacheBackend(CacheBackend):
    """Bounded in-memory cache; the least recently used entry is evicted first.

    Args:
        max_size: Maximum number of entries kept.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        max_size: int = _DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: OrderedDict[str, tuple[str, float | None]] = OrderedDict()
        self._max_size = max_size
        self._clock = clock

    def _live(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def get(self, key: str) -> str | None:
        value = self._live(key)
        if value is not None:
            self._entries.move_to_end(key)
        return value

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        self._entries[key] = (value, expires_at)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_size:
            self._entries.popitem(last=False)

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    async def size(self) -> int:
        for key in list(self._entries):
            self._live(key)
        return len(self._entries)
