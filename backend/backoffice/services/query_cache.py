"""
In-process query cache.

Reads are cached per (resource, kind, params) key for a short TTL and
dropped by prefix when the resource is written. `optimistic()` patches a
cached value before a remote write and restores it if the write fails.
"""

import copy
import logging
import time
from collections import OrderedDict
from contextlib import contextmanager
from typing import Any, Callable, Hashable, Iterator, Optional

from backoffice.core.config import get_settings

logger = logging.getLogger(__name__)

_MISSING = object()


def freeze(value: Any) -> Hashable:
    """Turn nested dict/list params into a hashable key component."""
    if isinstance(value, dict):
        return tuple(sorted((k, freeze(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple, set)):
        return tuple(freeze(v) for v in value)
    if hasattr(value, "model_dump"):
        return freeze(value.model_dump())
    return value


class QueryCache:
    """TTL cache keyed by tuples, bounded to max_entries (oldest evicted first)."""

    def __init__(self, ttl_seconds: float = 120, max_entries: int = 512, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[tuple, tuple[float, Any]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: tuple) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def get(self, key: tuple, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return default
        return value

    def set(self, key: tuple, value: Any) -> None:
        if key in self._entries:
            del self._entries[key]
        self._entries[key] = (self._clock(), value)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def invalidate(self, prefix: tuple) -> int:
        """Drop every key starting with `prefix`. Returns the number dropped."""
        size = len(prefix)
        stale = [key for key in self._entries if key[:size] == prefix]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"[CACHE] Invalidated {len(stale)} entries for {prefix}")
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    @contextmanager
    def optimistic(self, key: tuple, updater: Callable[[Any], Any]) -> Iterator[Any]:
        """Apply `updater` to the cached value; restore the snapshot if the block raises."""
        snapshot = self.get(key, _MISSING)
        if snapshot is not _MISSING:
            self.set(key, updater(copy.deepcopy(snapshot)))
        try:
            yield self.get(key)
        except BaseException:
            if snapshot is _MISSING:
                self._entries.pop(key, None)
            else:
                self.set(key, snapshot)
            logger.info(f"[CACHE] Rolled back optimistic update for {key}")
            raise


_query_cache: Optional[QueryCache] = None


def get_query_cache() -> QueryCache:
    """Get singleton query cache instance."""
    global _query_cache
    if _query_cache is None:
        settings = get_settings()
        _query_cache = QueryCache(
            ttl_seconds=settings.cache_ttl_seconds,
            max_entries=settings.cache_max_entries,
        )
    return _query_cache
