"""SQLite-backed stores shared across processes: AI usage and cached tier results."""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable

from persistence.models import UsageRecord
from persistence.usage import DAILY_AI_LIMIT, utc_now

logger = logging.getLogger(__name__)


_SCHEMA = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS ai_usage (
    user_id TEXT NOT NULL,
    day TEXT NOT NULL,
    used INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL,
    PRIMARY KEY(user_id, day)
);

CREATE TABLE IF NOT EXISTS ai_usage_logs (
    user_id TEXT NOT NULL,
    count INTEGER NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_ai_usage_logs_user_id ON ai_usage_logs(user_id);
"""


class SqliteUsageStore:
    def __init__(
        self,
        path: str | Path,
        daily_limit: int = DAILY_AI_LIMIT,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if daily_limit < 0:
            raise ValueError("daily_limit must be >= 0")
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._daily_limit = daily_limit
        self._clock = clock
        self._initialize()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize(self) -> None:
        with self._connect() as conn:
            conn.executescript(_SCHEMA)
            conn.commit()

    def _today(self) -> date:
        return self._clock().date()

    def check_user_ai_usage(self, user_id: str | None) -> bool:
        if not user_id:
            return False
        return self._used(user_id, self._today()) < self._daily_limit

    def track_ai_usage(self, user_id: str | None, count: int = 1) -> int:
        if not user_id or count <= 0:
            return 0
        now = self._clock()
        day = now.date().isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO ai_usage (user_id, day, used, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id, day) DO UPDATE SET
                    used = used + excluded.used,
                    updated_at = excluded.updated_at
                """,
                (user_id, day, count, now.isoformat()),
            )
            conn.execute(
                "INSERT INTO ai_usage_logs (user_id, count, created_at) VALUES (?, ?, ?)",
                (user_id, count, now.isoformat()),
            )
            conn.commit()
        used = self._used(user_id, now.date())
        if used >= self._daily_limit:
            logger.info("AI usage limit reached for user %s", user_id)
        return used

    def get_user_ai_usage(self, user_id: str) -> UsageRecord:
        day = self._today()
        return UsageRecord(
            user_id=user_id,
            day=day,
            used=self._used(user_id, day),
            limit=self._daily_limit,
        )

    def reset_user_ai_usage(self, user_id: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM ai_usage WHERE user_id = ?", (user_id,))
            conn.commit()

    def _used(self, user_id: str, day: date) -> int:
        row = self._fetch_one(
            "SELECT used FROM ai_usage WHERE user_id = ? AND day = ?",
            (user_id, day.isoformat()),
        )
        return int(row["used"]) if row else 0

    def _fetch_one(self, query: str, params: tuple[object, ...] = ()) -> sqlite3.Row | None:
        with self._connect() as conn:
            cur = conn.execute(query, params)
            return cur.fetchone()




_CACHE_SCHEMA = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS cache_entries (
    cache_key TEXT PRIMARY KEY,
    payload_json TEXT NOT NULL,
    expires_at REAL NOT NULL,
    created_at REAL NOT NULL,
    last_accessed REAL
);
CREATE INDEX IF NOT EXISTS idx_cache_entries_expires_at ON cache_entries(expires_at);
"""


class SqliteCacheStore:
    """Persistent second level for :class:`persistence.cache.ResultCache`.

    Expiry uses wall-clock seconds so entries stay valid across processes.
    """

    def __init__(self, path: str | Path, *, clock: Callable[[], float] = time.time) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._initialize()

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize(self) -> None:
        with self._connect() as conn:
            conn.executescript(_CACHE_SCHEMA)
            conn.commit()

    def get(self, cache_key: str) -> tuple[Any, float] | None:
        """Return ``(payload, remaining_ttl)`` for a live entry."""
        now = self._clock()
        row = self._fetch_one(
            "SELECT payload_json, expires_at FROM cache_entries WHERE cache_key = ?",
            (cache_key,),
        )
        if row is None:
            return None
        if now >= row["expires_at"]:
            self.delete(cache_key)
            return None
        try:
            payload = json.loads(row["payload_json"])
        except json.JSONDecodeError:
            logger.warning("Dropping unreadable cache row %s", cache_key[:12])
            self.delete(cache_key)
            return None
        with self._connect() as conn:
            conn.execute(
                "UPDATE cache_entries SET last_accessed = ? WHERE cache_key = ?",
                (now, cache_key),
            )
            conn.commit()
        return payload, row["expires_at"] - now

    def put(self, cache_key: str, payload: Any, ttl_seconds: float) -> None:
        now = self._clock()
        text = json.dumps(payload, ensure_ascii=False, sort_keys=True)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO cache_entries (cache_key, payload_json, expires_at, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(cache_key) DO UPDATE SET
                    payload_json = excluded.payload_json,
                    expires_at = excluded.expires_at,
                    created_at = excluded.created_at,
                    last_accessed = NULL
                """,
                (cache_key, text, now + ttl_seconds, now),
            )
            conn.commit()

    def delete(self, cache_key: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM cache_entries WHERE cache_key = ?", (cache_key,))
            conn.commit()
            return cur.rowcount > 0

    def recent(self, limit: int) -> list[tuple[str, Any, float]]:
        """Live entries, most recently written first, as ``(key, payload, remaining_ttl)``."""
        now = self._clock()
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT cache_key, payload_json, expires_at FROM cache_entries
                WHERE expires_at > ?
                ORDER BY created_at DESC
                LIMIT ?
                """,
                (now, limit),
            ).fetchall()
        entries: list[tuple[str, Any, float]] = []
        for row in rows:
            try:
                payload = json.loads(row["payload_json"])
            except json.JSONDecodeError:
                continue
            entries.append((row["cache_key"], payload, row["expires_at"] - now))
        return entries

    def prune(self) -> int:
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM cache_entries WHERE expires_at <= ?", (self._clock(),)
            )
            conn.commit()
            return cur.rowcount

    def clear(self) -> int:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM cache_entries")
            conn.commit()
            return cur.rowcount

    def count(self) -> int:
        row = self._fetch_one("SELECT COUNT(*) AS n FROM cache_entries")
        return int(row["n"]) if row else 0

    def _fetch_one(self, query: str, params: tuple[object, ...] = ()) -> sqlite3.Row | None:
        with self._connect() as conn:
            cur = conn.execute(query, params)
            return cur.fetchone()


__all__ = ["SqliteCacheStore", "SqliteUsageStore"]
