# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Cache backends used to memoize external classification calls."""

from riskwatch.cache.base import CacheBackend
from riskwatch.cache.memory import MemoryCacheBackend

__all__ = ["CacheBackend", "MemoryCacheBackend"]
