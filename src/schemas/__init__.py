"""Schema package for external and internal contracts."""

from .requests import AnalysisInput, AnalysisOptions, FixRequest, SelectionInput
from .responses import AnalysisResult, CacheStats, FixResult, UsageReport

__all__ = [
    "AnalysisInput",
    "AnalysisOptions",
    "AnalysisResult",
    "CacheStats",
    "FixRequest",
    "FixResult",
    "SelectionInput",
    "UsageReport",
]
