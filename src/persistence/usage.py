"""Per-user daily AI usage counters."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable, Dict, Tuple

from persistence.models import UsageRecord

logger = logging.getLogger(__name__)

DAILY_AI_LIMIT = 1000


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryUsageLimiter:
    """Counts AI calls per ``(user, UTC day)``; counters reset when the day changes."""

    def __init__(
        self,
        daily_limit: int = DAILY_AI_LIMIT,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if daily_limit < 0:
            raise ValueError("daily_limit must be >= 0")
        self._daily_limit = daily_limit
        self._clock = clock
        self._counts: Dict[Tuple[str, date], int] = {}

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    def _today(self) -> date:
        return self._clock().date()

    def check_user_ai_usage(self, user_id: str | None) -> bool:
        if not user_id:
            return False
        return self._counts.get((user_id, self._today()), 0) < self._daily_limit

    def track_ai_usage(self, user_id: str | None, count: int = 1) -> int:
        if not user_id or count <= 0:
            return 0
        key = (user_id, self._today())
        self._counts[key] = self._counts.get(key, 0) + count
        if self._counts[key] >= self._daily_limit:
            logger.info("AI usage limit reached for user %s", user_id)
        return self._counts[key]

    def get_user_ai_usage(self, user_id: str) -> UsageRecord:
        day = self._today()
        return UsageRecord(
            user_id=user_id,
            day=day,
            used=self._counts.get((user_id, day), 0),
            limit=self._daily_limit,
        )

    def reset_user_ai_usage(self, user_id: str) -> None:
        for key in [key for key in self._counts if key[0] == user_id]:
            del self._counts[key]


__all__ = ["DAILY_AI_LIMIT", "InMemoryUsageLimiter", "utc_now"]
