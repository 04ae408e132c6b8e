"""Analysis and fix services for CLI/API reuse."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, AsyncIterator, Callable, Mapping, Optional

from analyzers import default_registry
from analyzers.base import AnalyzerRegistry
from core.config import get_settings
from editor.fix import Selection, apply_fix
from engine.runner import SuggestionEngine
from persistence.cache import ResultCache, open_result_cache
from persistence.contracts import UsageLimiter
from persistence.sqlite_store import SqliteUsageStore
from persistence.usage import InMemoryUsageLimiter
from pipelines.graphs.analysis_graph import build_analysis_graph
from schemas.requests import AnalysisInput, FixRequest
from schemas.responses import (
    AnalysisResult,
    AppliedRange,
    CacheStats,
    FixResult,
    SelectionResult,
    UsageReport,
)

logger = logging.getLogger(__name__)

MAX_SESSIONS = 256


@lru_cache(maxsize=1)
def get_result_cache() -> ResultCache:
    """SQLite-backed second level when ``CACHE_STORE_PATH`` is set."""
    settings = get_settings()
    return open_result_cache(
        max_entries=settings.cache_max_entries,
        default_ttl=settings.fast_cache_ttl,
        store_path=settings.cache_store_path,
    )


@lru_cache(maxsize=1)
def get_usage_limiter() -> UsageLimiter:
    """SQLite-backed when ``USAGE_STORE_PATH`` is set, in-memory otherwise."""
    settings = get_settings()
    if settings.usage_store_path:
        return SqliteUsageStore(settings.usage_store_path, settings.ai_daily_limit)
    return InMemoryUsageLimiter(settings.ai_daily_limit)


@lru_cache(maxsize=1)
def get_registry() -> AnalyzerRegistry:
    return default_registry(get_settings())


@lru_cache(maxsize=1)
def get_analysis_graph() -> Any:
    return build_analysis_graph()


def build_engine() -> SuggestionEngine:
    return SuggestionEngine(
        registry=get_registry(),
        cache=get_result_cache(),
        usage_limiter=get_usage_limiter(),
        settings=get_settings(),
        graph=get_analysis_graph(),
    )


class EngineSessions:
    """One engine per document id, so requests for the same document share a
    generation sequence and a newer request supersedes an older one."""

    def __init__(
        self,
        factory: Callable[[], SuggestionEngine] = build_engine,
        *,
        max_sessions: int = MAX_SESSIONS,
    ) -> None:
        self._factory = factory
        self._max_sessions = max_sessions
        self._engines: "OrderedDict[str, SuggestionEngine]" = OrderedDict()

    def get(self, document_id: Optional[str]) -> SuggestionEngine:
        if document_id is None:
            return self._factory()
        engine = self._engines.get(document_id)
        if engine is None:
            engine = self._factory()
            self._engines[document_id] = engine
            while len(self._engines) > self._max_sessions:
                evicted, _ = self._engines.popitem(last=False)
                logger.debug("Evicted engine session for document %s", evicted)
        else:
            self._engines.move_to_end(document_id)
        return engine

    def clear(self) -> None:
        self._engines.clear()

    def __len__(self) -> int:
        return len(self._engines)


@lru_cache(maxsize=1)
def get_sessions() -> EngineSessions:
    return EngineSessions()


def reset_services() -> None:
    """Drop cached singletons (settings changes, tests)."""
    for factory in (
        get_result_cache,
        get_usage_limiter,
        get_registry,
        get_analysis_graph,
        get_sessions,
    ):
        factory.cache_clear()


def _coerce_input(input_data: AnalysisInput | Mapping[str, Any]) -> AnalysisInput:
    if isinstance(input_data, AnalysisInput):
        return input_data
    return AnalysisInput.model_validate(input_data)


async def run_analysis(input_data: AnalysisInput | Mapping[str, Any]) -> AnalysisResult:
    """Run a full analysis cycle and return the settled snapshot."""
    input_obj = _coerce_input(input_data)
    engine = get_sessions().get(input_obj.document_id)
    return await engine.analyze(
        input_obj.document,
        input_obj.metadata,
        input_obj.options,
        user_id=input_obj.user_id,
        document_id=input_obj.document_id,
    )


def run_fast_analysis(input_data: AnalysisInput | Mapping[str, Any]) -> AnalysisResult:
    """Run only the fast tier."""
    input_obj = _coerce_input(input_data)
    engine = get_sessions().get(input_obj.document_id)
    return engine.run_fast(
        input_obj.document,
        input_obj.metadata,
        input_obj.options,
        document_id=input_obj.document_id,
    )


def stream_analysis(
    input_data: AnalysisInput | Mapping[str, Any],
) -> AsyncIterator[AnalysisResult]:
    """Validate eagerly, then return an iterator over published snapshots."""
    input_obj = _coerce_input(input_data)
    engine = get_sessions().get(input_obj.document_id)
    engine.prepare(input_obj.document, input_obj.metadata, input_obj.options)
    return _stream(engine, input_obj)


async def _stream(
    engine: SuggestionEngine, input_obj: AnalysisInput
) -> AsyncIterator[AnalysisResult]:
    queue: "asyncio.Queue[AnalysisResult | None]" = asyncio.Queue()

    async def _run() -> AnalysisResult:
        try:
            return await engine.analyze(
                input_obj.document,
                input_obj.metadata,
                input_obj.options,
                user_id=input_obj.user_id,
                document_id=input_obj.document_id,
                on_publish=queue.put_nowait,
            )
        finally:
            queue.put_nowait(None)

    task = asyncio.create_task(_run())
    try:
        while True:
            snapshot = await queue.get()
            if snapshot is None:
                break
            yield snapshot
        await task
    finally:
        if not task.done():
            task.cancel()


def apply_fix_request(request: FixRequest | Mapping[str, Any]) -> FixResult:
    """Apply a suggestion's fix to the submitted document."""
    request_obj = request if isinstance(request, FixRequest) else FixRequest.model_validate(request)
    selection = None
    if request_obj.selection is not None:
        selection = Selection(request_obj.selection.from_, request_obj.selection.to)

    applied = apply_fix(
        request_obj.suggestion,
        request_obj.document,
        request_obj.replacement,
        selection=selection,
    )
    resolved = applied.range
    return FixResult(
        document=applied.document,
        applied_range=AppliedRange(
            plain_start=resolved.plain_start,
            plain_end=resolved.plain_end,
            tree_from=resolved.tree_from,
            tree_to=resolved.tree_to,
            strategy=resolved.strategy,
        ),
        replacement=applied.replacement,
        delta=applied.delta,
        selection=None
        if applied.selection is None
        else SelectionResult(from_=applied.selection.from_, to=applied.selection.to),
    )


def cache_stats() -> CacheStats:
    cache = get_result_cache()
    stats = cache.stats()
    return CacheStats(
        size=stats.size,
        hits=stats.hits,
        misses=stats.misses,
        max_entries=stats.max_entries,
        persisted=stats.persisted,
        timestamp=datetime.now(timezone.utc),
    )


def clear_cache() -> int:
    removed = get_result_cache().clear()
    logger.info("Cleared %d cache entries", removed)
    return removed


def usage_report(user_id: str) -> UsageReport:
    record = get_usage_limiter().get_user_ai_usage(user_id)
    return UsageReport(
        user_id=record.user_id,
        day=record.day.isoformat(),
        used=record.used,
        limit=record.limit,
        remaining=record.remaining,
    )


__all__ = [
    "EngineSessions",
    "apply_fix_request",
    "build_engine",
    "cache_stats",
    "clear_cache",
    "get_analysis_graph",
    "get_registry",
    "get_result_cache",
    "get_sessions",
    "get_usage_limiter",
    "reset_services",
    "run_analysis",
    "run_fast_analysis",
    "stream_analysis",
    "usage_report",
]
