"""Internal schema definitions."""

from .documents import DocumentMark, DocumentMetadata, DocumentNode  # noqa: F401
from .findings import (  # noqa: F401
    TIER_NAMES,
    Category,
    RawFinding,
    Severity,
    TierName,
    TierResult,
)
from .metrics import ReadabilityMetrics  # noqa: F401
from .suggestions import (  # noqa: F401
    OriginOffsets,
    Suggestion,
    SuggestionAction,
)

__all__ = [
    "Category",
    "DocumentMark",
    "DocumentMetadata",
    "DocumentNode",
    "OriginOffsets",
    "RawFinding",
    "ReadabilityMetrics",
    "Severity",
    "Suggestion",
    "SuggestionAction",
    "TIER_NAMES",
    "TierName",
    "TierResult",
]
