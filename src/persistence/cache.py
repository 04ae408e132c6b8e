"""Result cache keyed by content fingerprint.

The in-process level is always present. An optional persistent level (a
:class:`persistence.sqlite_store.SqliteCacheStore`) backs it: writes go to both
levels, and a memory miss falls through to the store and promotes the entry
with its remaining TTL.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from pathlib import Path
from typing import Any, Callable

from persistence.models import CacheEntry, CacheStatsRecord
from persistence.sqlite_store import SqliteCacheStore

logger = logging.getLogger(__name__)


class _Miss:
    _instance: "_Miss | None" = None

    def __new__(cls) -> "_Miss":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISS"


MISS = _Miss()


class ResultCache:
    """TTL + capacity bounded cache.

    Entries expire ``ttl_seconds`` after being written. When the cache is full
    the oldest inserted entry is evicted first; overwriting a key counts as a
    fresh insertion. Eviction only affects the in-process level.
    """

    def __init__(
        self,
        *,
        max_entries: int = 1000,
        default_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        store: SqliteCacheStore | None = None,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if default_ttl < 0:
            raise ValueError("default_ttl must be >= 0")
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._max_entries = max_entries
        self._default_ttl = float(default_ttl)
        self._clock = clock
        self._store = store
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def store(self) -> SqliteCacheStore | None:
        return self._store

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: object) -> bool:
        entry = self._entries.get(fingerprint)  # type: ignore[arg-type]
        return entry is not None and not entry.expired(self._clock())

    def get(self, fingerprint: str) -> Any:
        """Return the cached payload or ``MISS``."""
        entry = self._entries.get(fingerprint)
        if entry is not None and entry.expired(self._clock()):
            del self._entries[fingerprint]
            entry = None
        if entry is not None:
            self._hits += 1
            return entry.payload

        stored = self._store.get(fingerprint) if self._store is not None else None
        if stored is None:
            self._misses += 1
            return MISS
        payload, remaining = stored
        self._remember(fingerprint, payload, remaining)
        logger.debug("Promoted persisted cache entry %s", fingerprint[:12])
        self._hits += 1
        return payload

    def set(self, fingerprint: str, payload: Any, ttl_seconds: float | None = None) -> CacheEntry:
        ttl = self._default_ttl if ttl_seconds is None else float(ttl_seconds)
        if ttl < 0:
            raise ValueError("ttl_seconds must be >= 0")
        entry = self._remember(fingerprint, payload, ttl)
        if self._store is not None:
            try:
                self._store.put(fingerprint, payload, ttl)
            except (TypeError, ValueError) as exc:
                logger.warning("Not persisting cache entry %s: %s", fingerprint[:12], exc)
        return entry

    def _remember(self, fingerprint: str, payload: Any, ttl: float) -> CacheEntry:
        now = self._clock()
        self._entries.pop(fingerprint, None)
        while len(self._entries) >= self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug("Evicted cache entry %s", evicted[:12])
        entry = CacheEntry(
            fingerprint=fingerprint,
            payload=payload,
            expires_at=now + ttl,
            created_at=now,
        )
        self._entries[fingerprint] = entry
        return entry

    def delete(self, fingerprint: str) -> bool:
        removed = self._entries.pop(fingerprint, None) is not None
        if self._store is not None:
            removed = self._store.delete(fingerprint) or removed
        return removed

    def preload(self, limit: int | None = None) -> int:
        """Copy the most recent persisted entries into memory."""
        if self._store is None:
            return 0
        count = self._max_entries if limit is None else min(limit, self._max_entries)
        loaded = 0
        # Oldest first so the newest entries end up last in insertion order.
        for fingerprint, payload, remaining in reversed(self._store.recent(count)):
            self._remember(fingerprint, payload, remaining)
            loaded += 1
        logger.debug("Preloaded %d persisted cache entries", loaded)
        return loaded

    def prune(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expired(now)]
        for key in expired:
            del self._entries[key]
        removed = len(expired)
        if self._store is not None:
            removed += self._store.prune()
        return removed

    def clear(self) -> int:
        removed = len(self._entries)
        self._entries.clear()
        if self._store is not None:
            removed = max(removed, self._store.clear())
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        return removed

    def get_stats(self) -> dict[str, int]:
        return {"size": len(self._entries), "hits": self._hits, "misses": self._misses}

    def stats(self) -> CacheStatsRecord:
        return CacheStatsRecord(
            size=len(self._entries),
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            max_entries=self._max_entries,
            persisted=self._store.count() if self._store is not None else None,
        )


def open_result_cache(
    *,
    max_entries: int,
    default_ttl: float,
    store_path: str | Path | None = None,
) -> ResultCache:
    """Build a cache, adding the SQLite level when ``store_path`` is given."""
    if not store_path:
        return ResultCache(max_entries=max_entries, default_ttl=default_ttl)
    cache = ResultCache(
        max_entries=max_entries,
        default_ttl=default_ttl,
        store=SqliteCacheStore(store_path),
    )
    cache.preload()
    return cache


__all__ = ["MISS", "ResultCache", "open_result_cache"]
