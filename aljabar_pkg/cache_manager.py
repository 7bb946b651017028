"""Explicit solve cache.

This module provides:
- ``SolveCache``: a thread-safe, size-bounded LRU map from a structural
  equation key to a finished solve (result plus explanation steps)
- Cache hit tracking (last N hits for display)

There is no module-level cache. A dispatcher only memoizes through a cache
object passed to it, so tests can inject a fresh one per run.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Hashable

from .config import CACHE_SIZE_SOLVE
from .explanation import Step
from .logging_config import get_logger
from .types import SolverResult

logger = get_logger("cache")

_MAX_CACHE_HIT_TRACKING = 100  # Keep last 100 cache hits


class SolveCache:
    """LRU cache of ``(SolverResult, steps)`` keyed by structural hash.

    Steps are stored as an immutable tuple; callers rebuild a fresh
    Explanation from them so no explanation object is ever shared.
    """

    def __init__(self, maxsize: int = CACHE_SIZE_SOLVE):
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self.maxsize = maxsize
        self._entries: OrderedDict[Hashable, tuple[SolverResult, tuple[Step, ...]]] = (
            OrderedDict()
        )
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._hit_tracking: list[str] = []

    def get(self, key: Hashable) -> tuple[SolverResult, tuple[Step, ...]] | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            self._hit_tracking.append(str(key[0]) if isinstance(key, tuple) else str(key))
            if len(self._hit_tracking) > _MAX_CACHE_HIT_TRACKING:
                self._hit_tracking.pop(0)
        logger.debug("Cache hit for %s", key)
        return entry

    def put(self, key: Hashable, result: SolverResult, steps) -> None:
        with self._lock:
            self._entries[key] = (result, tuple(steps))
            self._entries.move_to_end(key)
            while len(self._entries) > self.maxsize:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted cache entry %s", evicted)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._hit_tracking.clear()

    def get_cache_hits(self) -> list[str]:
        """Return a copy of the recent cache hits (most recent last)."""
        with self._lock:
            return list(self._hit_tracking)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._entries),
                "maxsize": self.maxsize,
                "hits": self._hits,
                "misses": self._misses,
            }
