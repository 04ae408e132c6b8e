"""Tier nodes for the analysis graph.

Each tier node runs one tier through the result cache and appends a single
``TierResult`` to ``tier_results``; the deep branch appends the deep and
enhancement results together. Disabled tiers append a skipped result so
the reducer can tell "nothing found" apart from "did not run".
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Union

from langgraph.types import StreamWriter

from analyzers.base import AnalyzerRegistry
from analyzers.context import AnalysisContext
from editor.identity import build_suggestion
from engine.merge import merge_suggestions
from engine.tiers import arun_tier, run_tier
from schemas.internal.findings import TierName, TierResult
from schemas.internal.suggestions import Suggestion

logger = logging.getLogger(__name__)

CANDIDATE_SOURCES = ("fast", "deep")

NodeFn = Callable[[dict], Union[dict, Awaitable[dict]]]


def _registry(state: Mapping[str, Any]) -> AnalyzerRegistry:
    registry = state.get("registry")
    if not isinstance(registry, AnalyzerRegistry):
        raise ValueError("analysis state requires an AnalyzerRegistry under 'registry'")
    return registry


def _context(state: Mapping[str, Any]) -> AnalysisContext:
    context = state.get("context")
    if not isinstance(context, AnalysisContext):
        raise ValueError("analysis state requires an AnalysisContext under 'context'")
    return context


def _ttl(state: Mapping[str, Any], tier: TierName) -> float | None:
    ttls = state.get("ttls") or {}
    value = ttls.get(tier)
    return None if value is None else float(value)


def _tier_kwargs(state: Mapping[str, Any], tier: TierName) -> Dict[str, Any]:
    return {
        "cache": state.get("cache"),
        "ttl": _ttl(state, tier),
        "code_version": state.get("code_version"),
    }


def _skipped(tier: TierName) -> dict:
    return {"tier_results": [TierResult(source=tier, skipped=True)]}


def fast_analysis_node(state: dict) -> dict:
    """LangGraph node: local rule checks on the plain text."""
    if not state.get("enable_fast", True):
        return _skipped("fast")
    analyzers = _registry(state).for_tier("fast", features=state.get("features"))
    result = run_tier(
        "fast", analyzers, state.get("text") or "", _context(state), **_tier_kwargs(state, "fast")
    )
    logger.debug("fast tier produced %d findings", len(result.findings))
    return {"tier_results": [result]}


async def deep_analysis_node(state: dict) -> dict:
    """LangGraph node: document-aware checks, run off the event loop."""
    if not state.get("enable_deep", True):
        return _skipped("deep")
    analyzers = _registry(state).for_tier("deep", features=state.get("features"))
    result = await asyncio.to_thread(
        run_tier,
        "deep",
        analyzers,
        state.get("text") or "",
        _context(state),
        **_tier_kwargs(state, "deep"),
    )
    logger.debug("deep tier produced %d findings", len(result.findings))
    return {"tier_results": [result]}


async def ai_detect_node(state: dict) -> dict:
    """LangGraph node: model-detected issues in the plain text."""
    if not state.get("ai_allowed"):
        return _skipped("ai_detect")
    analyzers = _registry(state).for_tier("ai_detect", features=state.get("features"))
    result = await arun_tier(
        "ai_detect",
        analyzers,
        state.get("text") or "",
        _context(state),
        **_tier_kwargs(state, "ai_detect"),
    )
    return {"tier_results": [result]}


def enhancement_candidates(state: Mapping[str, Any]) -> List[Suggestion]:
    """Merged fast and deep suggestions available to the enhancement tier."""
    text = state.get("text") or ""
    window = int(state.get("context_window") or 20)
    batches: Dict[str, List[Suggestion]] = {}
    for result in state.get("tier_results") or []:
        if result.source not in CANDIDATE_SOURCES:
            continue
        batches[result.source] = [
            build_suggestion(finding, text, source=result.source, context_window=window)
            for finding in result.findings
        ]
    threshold = state.get("confidence_threshold")
    return merge_suggestions(
        batches, confidence_threshold=0.7 if threshold is None else float(threshold)
    )


async def ai_enhance_node(state: dict) -> dict:
    """LangGraph node: rewrite fixes of earlier suggestions with the model."""
    if not state.get("ai_allowed"):
        return _skipped("ai_enhance")
    analyzers = _registry(state).for_tier("ai_enhance", features=state.get("features"))
    candidates = enhancement_candidates(state)
    if not analyzers or not candidates:
        return _skipped("ai_enhance")
    context = _context(state).with_candidates(candidates)
    result = await arun_tier(
        "ai_enhance",
        analyzers,
        state.get("text") or "",
        context,
        **_tier_kwargs(state, "ai_enhance"),
    )
    return {"tier_results": [result]}


async def _call_node(node: NodeFn, state: dict) -> dict:
    update = node(state)
    if inspect.isawaitable(update):
        update = await update
    return update or {}


def build_deep_branch_node(
    deep_node: NodeFn = deep_analysis_node,
    enhance_node: NodeFn = ai_enhance_node,
) -> Callable[..., Awaitable[dict]]:
    """Chain the deep tier and AI enhancement into a single graph node.

    The deep result is emitted on the ``custom`` stream as soon as it exists,
    so consumers can publish it while enhancement is still running. Neither
    step waits for AI detection running alongside.
    """

    async def deep_branch_node(state: dict, writer: StreamWriter) -> dict:
        deep_results = list((await _call_node(deep_node, state)).get("tier_results") or [])
        for result in deep_results:
            writer({"tier_result": result})
        enhance_state = {
            **state,
            "tier_results": [*(state.get("tier_results") or []), *deep_results],
        }
        enhanced = list((await _call_node(enhance_node, enhance_state)).get("tier_results") or [])
        return {"tier_results": deep_results + enhanced}

    return deep_branch_node


__all__ = [
    "NodeFn",
    "ai_detect_node",
    "ai_enhance_node",
    "build_deep_branch_node",
    "deep_analysis_node",
    "enhancement_candidates",
    "fast_analysis_node",
]
