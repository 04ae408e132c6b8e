"""Run one analyzer tier through the result cache."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Sequence

from pydantic import ValidationError

from analyzers.base import Analyzer, AnalyzerOutcome, safe_arun, safe_run
from analyzers.context import AnalysisContext
from persistence.cache import MISS, ResultCache
from persistence.hashing import analysis_cache_key
from schemas.internal.findings import RawFinding, TierName, TierResult

logger = logging.getLogger(__name__)

CONTEXT_FREE_TIERS = frozenset({"fast"})


def tier_cache_key(
    tier: TierName,
    analyzers: Sequence[Analyzer],
    text: str,
    context: AnalysisContext,
    *,
    code_version: str | None = None,
) -> str:
    metadata = None if tier in CONTEXT_FREE_TIERS else context.fingerprint_payload()
    flags = {
        "analyzers": [analyzer.config() for analyzer in analyzers],
    }
    return analysis_cache_key(tier, text, metadata, flags, code_version=code_version)


def _load_cached(cache: ResultCache, key: str, tier: TierName) -> Optional[TierResult]:
    payload = cache.get(key)
    if payload is MISS:
        return None
    try:
        findings = [RawFinding.model_validate(item) for item in payload]
    except (ValidationError, TypeError) as exc:
        logger.warning("Discarding corrupt %s cache entry %s: %s", tier, key[:12], exc)
        cache.delete(key)
        return None
    logger.debug("Cache hit for %s tier (%d findings)", tier, len(findings))
    return TierResult(source=tier, findings=findings, cached=True)


def _collect(tier: TierName, outcomes: Iterable[AnalyzerOutcome]) -> TierResult:
    findings: List[RawFinding] = []
    failed: List[str] = []
    calls = 0
    for outcome in outcomes:
        findings.extend(outcome.findings)
        calls += outcome.calls
        if not outcome.ok:
            failed.append(outcome.analyzer)
    return TierResult(source=tier, findings=findings, failed=failed, calls=calls)


def _store(
    cache: Optional[ResultCache], key: Optional[str], result: TierResult, ttl: Optional[float]
) -> None:
    if cache is None or key is None or result.failed:
        return
    cache.set(key, [finding.model_dump(mode="json") for finding in result.findings], ttl)


def run_tier(
    tier: TierName,
    analyzers: Sequence[Analyzer],
    text: str,
    context: AnalysisContext,
    *,
    cache: Optional[ResultCache] = None,
    ttl: Optional[float] = None,
    code_version: str | None = None,
) -> TierResult:
    """Run ``analyzers`` synchronously; failures degrade to empty results."""
    if not analyzers:
        return TierResult(source=tier, skipped=True)
    key = None
    if cache is not None:
        key = tier_cache_key(tier, analyzers, text, context, code_version=code_version)
        cached = _load_cached(cache, key, tier)
        if cached is not None:
            return cached

    result = _collect(tier, (safe_run(analyzer, text, context) for analyzer in analyzers))
    _store(cache, key, result, ttl)
    return result


async def arun_tier(
    tier: TierName,
    analyzers: Sequence[Analyzer],
    text: str,
    context: AnalysisContext,
    *,
    cache: Optional[ResultCache] = None,
    ttl: Optional[float] = None,
    code_version: str | None = None,
) -> TierResult:
    """Run ``analyzers`` concurrently on the event loop."""
    if not analyzers:
        return TierResult(source=tier, skipped=True)
    key = None
    if cache is not None:
        key = tier_cache_key(tier, analyzers, text, context, code_version=code_version)
        cached = _load_cached(cache, key, tier)
        if cached is not None:
            return cached

    outcomes = await asyncio.gather(
        *(safe_arun(analyzer, text, context) for analyzer in analyzers)
    )
    result = _collect(tier, outcomes)
    _store(cache, key, result, ttl)
    return result


__all__ = ["arun_tier", "run_tier", "tier_cache_key"]
