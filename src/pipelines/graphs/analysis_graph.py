"""Analysis LangGraph workflow assembly.

The fast tier runs first. Two branches then run side by side: ``deep`` (the
deep tier followed by AI enhancement, which rewrites fast and deep
suggestions) and ``ai_detect``. Enhancement therefore never waits for
detection. The deep result is streamed on the ``custom`` channel before
enhancement starts.
"""

from __future__ import annotations

import operator
from typing import Annotated, Any, cast

from typing_extensions import TypedDict

from langgraph.graph import END, START, StateGraph

from pipelines.graphs.nodes.analysis import (
    NodeFn,
    ai_detect_node,
    ai_enhance_node,
    build_deep_branch_node,
    deep_analysis_node,
    fast_analysis_node,
)


class AnalysisGraphState(TypedDict, total=False):
    text: str
    context: object
    registry: object
    cache: object
    features: list[str]

    enable_fast: bool
    enable_deep: bool
    ai_allowed: bool

    ttls: dict
    context_window: int
    confidence_threshold: float
    code_version: str

    tier_results: Annotated[list, operator.add]


def build_analysis_graph(*, node_overrides: dict[str, NodeFn] | None = None):
    """Build and compile the tiered analysis graph.

    ``node_overrides`` may replace any of ``fast``, ``deep``, ``ai_detect`` and
    ``ai_enhance``; the deep and enhancement overrides are chained inside the
    deep branch.
    """
    overrides = node_overrides or {}
    builder: StateGraph = StateGraph(cast(Any, AnalysisGraphState))

    deep_branch = build_deep_branch_node(
        overrides.get("deep") or deep_analysis_node,
        overrides.get("ai_enhance") or ai_enhance_node,
    )
    builder.add_node("fast", cast(Any, overrides.get("fast") or fast_analysis_node))
    builder.add_node("deep", cast(Any, deep_branch))
    builder.add_node("ai_detect", cast(Any, overrides.get("ai_detect") or ai_detect_node))

    builder.add_edge(START, "fast")
    builder.add_edge("fast", "deep")
    builder.add_edge("fast", "ai_detect")
    builder.add_edge("deep", END)
    builder.add_edge("ai_detect", END)

    return builder.compile()


__all__ = ["AnalysisGraphState", "build_analysis_graph"]
