"""In-process TTL caches with hit/miss accounting."""

import logging
import threading
import time
from typing import Any, Callable, Hashable, Optional

logger = logging.getLogger(__name__)

_MISSING = object()


class TTLCache:
    """
    Small key/value cache whose entries expire after ttl_seconds.

    Thread-safe; background sync tasks and request handlers share instances.
    """

    def __init__(self, name: str, ttl_seconds: float = 300, clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: dict[Hashable, tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            entry = self._data.get(key, _MISSING)
            if entry is _MISSING:
                self.misses += 1
                return default
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._data[key]
                self.evictions += 1
                self.misses += 1
                return default
            self.hits += 1
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._data[key] = (self._clock() + self.ttl_seconds, value)

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the cached value, calling loader on a miss. None results are not cached."""
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        value = loader()
        if value is not None:
            self.set(key, value)
        return value

    def clear(self, key: Optional[Hashable] = None) -> None:
        with self._lock:
            if key is None:
                self._data.clear()
            else:
                self._data.pop(key, None)

    def stats(self) -> dict[str, Any]:
        total = self.hits + self.misses
        return {
            "name": self.name,
            "size": len(self._data),
            "ttlSeconds": self.ttl_seconds,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hitRate": round(self.hits / total, 4) if total else 0.0,
        }

    def reset_stats(self) -> None:
        self.hits = self.misses = self.evictions = 0


# Process-wide registry, reported by the development cache analysis endpoint
_registry: dict[str, TTLCache] = {}
_registry_lock = threading.Lock()


def get_cache(name: str, ttl_seconds: float = 300) -> TTLCache:
    """Return the named cache, creating it on first use."""
    with _registry_lock:
        cache = _registry.get(name)
        if cache is None:
            cache = TTLCache(name, ttl_seconds)
            _registry[name] = cache
        return cache


def clear_caches(prefix: str = "") -> None:
    for name, cache in list(_registry.items()):
        if name.startswith(prefix):
            cache.clear()
    logger.debug("Cleared caches with prefix %r", prefix)


def cache_report() -> dict[str, Any]:
    """Aggregate statistics over every registered cache."""
    caches = [cache.stats() for cache in _registry.values()]
    hits = sum(c["hits"] for c in caches)
    misses = sum(c["misses"] for c in caches)
    total = hits + misses
    return {
        "caches": caches,
        "totals": {
            "hits": hits,
            "misses": misses,
            "total": total,
            "hitRate": round(hits / total, 4) if total else 0.0,
        },
    }
