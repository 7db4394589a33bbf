"""Time-bounded caches for module trees, analytics and the module list."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Cache domains
TREES = "trees"
ANALYTICS = "analytics"
MODULES = "modules"

# Key used by the single-slot domains
_GLOBAL = "*"


@dataclass
class CacheEntry(Generic[T]):
    """Cached value and the clock reading when it was stored."""

    data: T
    timestamp: float

    def is_fresh(self, now: float, ttl: float) -> bool:
        return now - self.timestamp < ttl


class SitemapCache:
    """Cache service shared by every request.

    Three domains with independent TTLs: per-module trees, the global
    analytics report and the global module list. A single lock guards map
    access only; rebuilds run outside it so unrelated modules never wait on
    each other's scans.

    Each (domain, key) carries a generation number bumped on invalidation. A
    build that started before an invalidation is handed back to its caller
    but never stored, so a stale scan cannot overwrite a newer invalidation.
    """

    def __init__(
        self,
        tree_ttl: float,
        analytics_ttl: float,
        modules_ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttls = {TREES: tree_ttl, ANALYTICS: analytics_ttl, MODULES: modules_ttl}
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, dict[str, CacheEntry[Any]]] = {d: {} for d in self._ttls}
        self._generations: dict[tuple[str, str], int] = {}
        self._epoch = 0
        self._hits = 0
        self._misses = 0

    def get(self, domain: str, key: str = _GLOBAL) -> Optional[Any]:
        """Return the cached value if fresh; stale entries are dropped."""
        with self._lock:
            entry = self._entries[domain].get(key)
            if entry is None:
                return None
            if entry.is_fresh(self._clock(), self._ttls[domain]):
                return entry.data
            del self._entries[domain][key]
            return None

    def put(self, domain: str, value: Any, key: str = _GLOBAL) -> None:
        with self._lock:
            self._entries[domain][key] = CacheEntry(data=value, timestamp=self._clock())

    def get_or_build(self, domain: str, build: Callable[[], T], key: str = _GLOBAL) -> T:
        """Return a fresh cached value or build, store and return a new one."""
        with self._lock:
            entry = self._entries[domain].get(key)
            if entry is not None and entry.is_fresh(self._clock(), self._ttls[domain]):
                self._hits += 1
                logger.debug(f"Cache hit: {domain}/{key}")
                return entry.data
            self._misses += 1
            generation = self._generation(domain, key)

        logger.debug(f"Cache miss: {domain}/{key}, rebuilding")
        value = build()

        with self._lock:
            if self._generation(domain, key) == generation:
                self._entries[domain][key] = CacheEntry(data=value, timestamp=self._clock())
            else:
                logger.debug(f"Discarding build of {domain}/{key} invalidated mid-flight")
        return value

    def _generation(self, domain: str, key: str) -> tuple[int, int]:
        return (self._epoch, self._generations.get((domain, key), 0))

    def _bump(self, domain: str, key: str) -> None:
        self._entries[domain].pop(key, None)
        self._generations[(domain, key)] = self._generations.get((domain, key), 0) + 1

    def invalidate_module(self, module: str) -> None:
        """Drop one module's tree and the cross-module views derived from it."""
        with self._lock:
            self._bump(TREES, module)
            self._bump(ANALYTICS, _GLOBAL)
            self._bump(MODULES, _GLOBAL)
        logger.debug(f"Invalidated cache for module {module}")

    def invalidate_all(self) -> None:
        """Clear every domain unconditionally."""
        with self._lock:
            for entries in self._entries.values():
                entries.clear()
            self._epoch += 1
        logger.info("Invalidated all caches")

    def stats(self) -> dict[str, Any]:
        """Entry counts, hit/miss counters and TTLs."""
        with self._lock:
            return {
                "tree_entries": len(self._entries[TREES]),
                "cached_modules": sorted(self._entries[TREES]),
                "analytics_cached": _GLOBAL in self._entries[ANALYTICS],
                "modules_cached": _GLOBAL in self._entries[MODULES],
                "hits": self._hits,
                "misses": self._misses,
                "ttl_seconds": dict(self._ttls),
            }
