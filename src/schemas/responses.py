"""External response schemas for analysis and fix runs."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.internal.documents import DocumentNode
from schemas.internal.findings import TierName
from schemas.internal.metrics import ReadabilityMetrics
from schemas.internal.suggestions import Suggestion

CycleStateName = Literal[
    "idle",
    "fast_running",
    "fast_ready",
    "deep_running",
    "enhanced_ready",
    "settled",
]


class AnalysisResult(BaseModel):
    """A published snapshot of one analysis cycle."""

    generation: int = Field(ge=0)
    state: CycleStateName
    suggestions: List[Suggestion] = Field(default_factory=list)
    sources: List[TierName] = Field(default_factory=list)
    cached_sources: List[TierName] = Field(default_factory=list)
    ai_skipped: bool = False
    metrics: Optional[ReadabilityMetrics] = None
    document_id: Optional[str] = None
    runtime_ms: Optional[int] = None
    warnings: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class AppliedRange(BaseModel):
    plain_start: int = Field(ge=0)
    plain_end: int = Field(ge=0)
    tree_from: int = Field(ge=0)
    tree_to: int = Field(ge=0)
    strategy: Literal["direct", "search", "context"]

    model_config = ConfigDict(extra="forbid")


class SelectionResult(BaseModel):
    from_: int = Field(ge=0, alias="from")
    to: int = Field(ge=0)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class FixResult(BaseModel):
    document: DocumentNode
    applied_range: AppliedRange
    replacement: str
    delta: int
    selection: Optional[SelectionResult] = None

    model_config = ConfigDict(extra="forbid")


class CacheStats(BaseModel):
    size: int = Field(ge=0)
    hits: int = Field(ge=0)
    misses: int = Field(ge=0)
    max_entries: int = Field(ge=1)
    persisted: Optional[int] = Field(default=None, ge=0)
    timestamp: datetime

    model_config = ConfigDict(extra="forbid")


class UsageReport(BaseModel):
    user_id: str
    day: str
    used: int = Field(ge=0)
    limit: int = Field(ge=0)
    remaining: int = Field(ge=0)

    model_config = ConfigDict(extra="forbid")


__all__ = [
    "AnalysisResult",
    "AppliedRange",
    "CacheStats",
    "CycleStateName",
    "FixResult",
    "SelectionResult",
    "UsageReport",
]
