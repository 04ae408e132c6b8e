"""Persistence protocol contracts."""

from __future__ import annotations

from typing import Any, Protocol

from persistence.models import CacheEntry, UsageRecord


class ResultStore(Protocol):
    def get(self, fingerprint: str) -> Any: ...

    def set(self, fingerprint: str, payload: Any, ttl_seconds: float | None = None) -> CacheEntry: ...

    def get_stats(self) -> dict[str, int]: ...


class UsageLimiter(Protocol):
    def check_user_ai_usage(self, user_id: str | None) -> bool: ...

    def track_ai_usage(self, user_id: str | None, count: int = 1) -> int: ...

    def get_user_ai_usage(self, user_id: str) -> UsageRecord: ...

    def reset_user_ai_usage(self, user_id: str) -> None: ...


__all__ = ["ResultStore", "UsageLimiter"]
