"""Persistence subsystem exports."""

from persistence.cache import MISS, ResultCache, open_result_cache
from persistence.sqlite_store import SqliteCacheStore, SqliteUsageStore
from persistence.usage import InMemoryUsageLimiter

__all__ = [
    "InMemoryUsageLimiter",
    "MISS",
    "ResultCache",
    "SqliteCacheStore",
    "SqliteUsageStore",
    "open_result_cache",
]
