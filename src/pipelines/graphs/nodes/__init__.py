"""Graph node implementations."""

from .analysis import (  # noqa: F401
    ai_detect_node,
    ai_enhance_node,
    build_deep_branch_node,
    deep_analysis_node,
    fast_analysis_node,
)

__all__ = [
    "ai_detect_node",
    "ai_enhance_node",
    "build_deep_branch_node",
    "deep_analysis_node",
    "fast_analysis_node",
]
