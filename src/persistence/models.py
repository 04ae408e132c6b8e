"""Lightweight persistence records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    fingerprint: str
    payload: Any
    expires_at: float
    created_at: float

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class CacheStatsRecord:
    size: int
    hits: int
    misses: int
    evictions: int
    max_entries: int
    persisted: int | None = None


@dataclass(frozen=True)
class UsageRecord:
    user_id: str
    day: date
    used: int
    limit: int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)


__all__ = ["CacheEntry", "CacheStatsRecord", "UsageRecord"]
