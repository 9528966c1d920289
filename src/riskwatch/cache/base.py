# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Abstract cache backend interface with TTL support."""

from __future__ import annotations

import abc


class CacheBackend(abc.ABC):
    """Async string key/value store with optional per-entry expiry."""

    @abc.abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the cached value, or ``None`` when missing or expired."""

    @abc.abstractmethod
    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store *value* under *key*; ``ttl`` is in seconds, ``None`` never expires."""

    @abc.abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove *key*, returning whether it was present."""

    @abc.abstractmethod
    async def clear(self) -> int:
        """Drop every entry and return how many were removed."""

    @abc.abstractmethod
    async def size(self) -> int:
        """Number of live entries."""
