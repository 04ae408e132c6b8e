"""Suggestion engine: drives analysis cycles through the tier graph."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Mapping, Optional

from analyzers import default_registry
from analyzers.base import AnalyzerRegistry
from analyzers.context import AnalysisContext, build_context
from analyzers.readability import compute_readability_metrics
from core.config import Settings, get_settings
from editor.position import coerce_document, plain_text
from engine.errors import InvalidInputError
from engine.merge import AI_SOURCES
from engine.reducer import CycleReducer, PublishFn
from engine.tiers import run_tier
from persistence.cache import ResultCache, open_result_cache
from persistence.contracts import UsageLimiter
from persistence.usage import InMemoryUsageLimiter
from pipelines.graphs.analysis_graph import build_analysis_graph
from schemas.internal.documents import DocumentMetadata, DocumentNode
from schemas.internal.findings import TIER_NAMES, TierResult
from schemas.requests import AnalysisOptions
from schemas.responses import AnalysisResult
from wordwise import __version__

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedOptions:
    enable_fast: bool
    enable_deep: bool
    enable_seo: bool
    enable_ai: bool
    confidence_threshold: float
    use_cache: bool

    def features(self) -> list[str]:
        return ["seo"] if self.enable_seo else []


@dataclass(frozen=True)
class PreparedInput:
    document: DocumentNode
    metadata: Optional[DocumentMetadata]
    text: str
    context: AnalysisContext
    options: ResolvedOptions


class SuggestionEngine:
    """Runs analysis cycles and reconciles their partial results.

    Each call to :meth:`analyze` or :meth:`run_fast` starts a new generation;
    results still in flight for an older generation are dropped by the
    reducer when they arrive. Generation bumps and reducer updates are
    serialized so :meth:`run_fast` may be called from worker threads.
    """

    def __init__(
        self,
        *,
        registry: AnalyzerRegistry | None = None,
        cache: ResultCache | None = None,
        usage_limiter: UsageLimiter | None = None,
        settings: Settings | None = None,
        graph: Any | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._registry = registry or default_registry(self._settings)
        self._cache = (
            cache
            if cache is not None
            else open_result_cache(
                max_entries=self._settings.cache_max_entries,
                default_ttl=self._settings.fast_cache_ttl,
                store_path=self._settings.cache_store_path,
            )
        )
        self._usage: UsageLimiter = usage_limiter or InMemoryUsageLimiter(
            self._settings.ai_daily_limit
        )
        self._graph = graph if graph is not None else build_analysis_graph()
        self._reducer = CycleReducer(
            confidence_threshold=self._settings.ai_confidence_threshold,
            context_window=self._settings.context_window,
        )
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def registry(self) -> AnalyzerRegistry:
        return self._registry

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def usage_limiter(self) -> UsageLimiter:
        return self._usage

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def snapshot(self) -> AnalysisResult:
        return self._reducer.snapshot

    def subscribe(self, listener: PublishFn) -> None:
        self._reducer.subscribe(listener)

    def resolve_options(self, options: AnalysisOptions | Mapping[str, Any] | None) -> ResolvedOptions:
        opts = (
            options
            if isinstance(options, AnalysisOptions)
            else AnalysisOptions.model_validate(options or {})
        )
        settings = self._settings

        def pick(value: Any, default: Any) -> Any:
            return default if value is None else value

        return ResolvedOptions(
            enable_fast=pick(opts.enable_fast, settings.enable_fast),
            enable_deep=pick(opts.enable_deep, settings.enable_deep),
            enable_seo=pick(opts.enable_seo, settings.enable_seo),
            enable_ai=pick(opts.enable_ai, settings.enable_ai),
            confidence_threshold=pick(
                opts.ai_confidence_threshold, settings.ai_confidence_threshold
            ),
            use_cache=pick(opts.use_cache, settings.cache_enabled),
        )

    def prepare(
        self,
        document: DocumentNode | Mapping[str, Any] | None,
        metadata: DocumentMetadata | Mapping[str, Any] | None,
        options: AnalysisOptions | Mapping[str, Any] | None,
    ) -> PreparedInput:
        if document is None:
            raise InvalidInputError("document is required")
        root = coerce_document(document)
        if root.type != "doc":
            raise InvalidInputError(f"document root must be 'doc', got {root.type!r}")
        meta = (
            metadata
            if metadata is None or isinstance(metadata, DocumentMetadata)
            else DocumentMetadata.model_validate(metadata)
        )
        resolved = self.resolve_options(options)
        if resolved.enable_seo and meta is None:
            raise InvalidInputError("SEO analysis requires document metadata")
        text = plain_text(root)
        return PreparedInput(
            document=root,
            metadata=meta,
            text=text,
            context=build_context(root, meta, text),
            options=resolved,
        )

    def _start_cycle(self, text: str, **begin_kwargs: Any) -> int:
        with self._lock:
            self._generation += 1
            self._reducer.begin(self._generation, text, **begin_kwargs)
            return self._generation

    def _accept(self, generation: int, result: TierResult) -> AnalysisResult:
        """Apply ``result``; a superseded cycle gets the current snapshot back."""
        with self._lock:
            return self._reducer.accept(generation, result) or self._reducer.snapshot

    def _ttls(self) -> dict[str, float]:
        settings = self._settings
        return {
            "fast": settings.fast_cache_ttl,
            "deep": settings.deep_cache_ttl,
            "ai_detect": settings.ai_cache_ttl,
            "ai_enhance": settings.ai_cache_ttl,
        }

    def run_fast(
        self,
        document: DocumentNode | Mapping[str, Any] | None,
        metadata: DocumentMetadata | Mapping[str, Any] | None = None,
        options: AnalysisOptions | Mapping[str, Any] | None = None,
        *,
        document_id: str | None = None,
    ) -> AnalysisResult:
        """Synchronous fast-tier pass for the typing path."""
        start = perf_counter()
        prepared = self.prepare(document, metadata, options)
        generation = self._start_cycle(
            prepared.text,
            expected=("fast",),
            metrics=compute_readability_metrics(prepared.text),
            confidence_threshold=prepared.options.confidence_threshold,
            document_id=document_id,
        )
        analyzers = (
            self._registry.for_tier("fast", features=prepared.options.features())
            if prepared.options.enable_fast
            else []
        )
        result = run_tier(
            "fast",
            analyzers,
            prepared.text,
            prepared.context,
            cache=self._cache if prepared.options.use_cache else None,
            ttl=self._settings.fast_cache_ttl,
            code_version=__version__,
        )
        snapshot = self._accept(generation, result)
        return snapshot.model_copy(update={"runtime_ms": _elapsed_ms(start)})

    async def analyze(
        self,
        document: DocumentNode | Mapping[str, Any] | None,
        metadata: DocumentMetadata | Mapping[str, Any] | None = None,
        options: AnalysisOptions | Mapping[str, Any] | None = None,
        *,
        user_id: str | None = None,
        document_id: str | None = None,
        on_publish: PublishFn | None = None,
    ) -> AnalysisResult:
        """Run one full cycle and return its settled snapshot.

        ``on_publish`` receives every intermediate snapshot of this cycle.
        """
        start = perf_counter()
        prepared = self.prepare(document, metadata, options)
        opts = prepared.options

        ai_allowed = opts.enable_ai
        ai_skipped = False
        if ai_allowed and not self._usage.check_user_ai_usage(user_id):
            logger.info("AI tiers skipped for user %s (no user or daily limit reached)", user_id)
            ai_allowed = False
            ai_skipped = True

        generation = self._start_cycle(
            prepared.text,
            expected=TIER_NAMES,
            metrics=compute_readability_metrics(prepared.text),
            ai_skipped=ai_skipped,
            confidence_threshold=opts.confidence_threshold,
            document_id=document_id,
            on_publish=on_publish,
        )
        state = {
            "text": prepared.text,
            "context": prepared.context,
            "registry": self._registry,
            "cache": self._cache if opts.use_cache else None,
            "features": opts.features(),
            "enable_fast": opts.enable_fast,
            "enable_deep": opts.enable_deep,
            "ai_allowed": ai_allowed,
            "ttls": self._ttls(),
            "context_window": self._settings.context_window,
            "confidence_threshold": opts.confidence_threshold,
            "code_version": __version__,
            "tier_results": [],
        }

        ai_calls = 0
        accepted: set[str] = set()
        try:
            async for mode, chunk in self._graph.astream(
                state, stream_mode=["custom", "updates"]
            ):
                for result in _tier_results(mode, chunk):
                    # The deep result arrives on both channels.
                    if result.source in accepted:
                        continue
                    accepted.add(result.source)
                    if result.source in AI_SOURCES and not result.cached:
                        ai_calls += result.calls
                    self._accept(generation, result)
        finally:
            if ai_calls and user_id is not None:
                self._usage.track_ai_usage(user_id, ai_calls)

        with self._lock:
            snapshot = self._reducer.settle(generation)
            if snapshot is None:
                logger.debug("Cycle %d superseded before it settled", generation)
                snapshot = self._reducer.snapshot
        return snapshot.model_copy(update={"runtime_ms": _elapsed_ms(start)})


def _tier_results(mode: str, chunk: Any) -> list[TierResult]:
    if mode == "custom":
        result = chunk.get("tier_result") if isinstance(chunk, Mapping) else None
        return [result] if isinstance(result, TierResult) else []
    results: list[TierResult] = []
    for node_update in (chunk or {}).values():
        results.extend((node_update or {}).get("tier_results") or [])
    return results


def _elapsed_ms(start: float) -> int:
    return int((perf_counter() - start) * 1000)


__all__ = ["PreparedInput", "ResolvedOptions", "SuggestionEngine"]
