"""Analyzer output contracts."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Category = Literal["spelling", "grammar", "style", "readability", "seo", "tone"]
Severity = Literal["error", "warning", "suggestion"]
TierName = Literal["fast", "deep", "ai_detect", "ai_enhance"]

TIER_NAMES: tuple[TierName, ...] = ("fast", "deep", "ai_detect", "ai_enhance")


class RawFinding(BaseModel):
    """A single analyzer result expressed in plain-text offsets.

    Document-level findings (for example "title too short") carry no offsets.
    """

    matched_text: str = ""
    plain_start: Optional[int] = Field(default=None, ge=0)
    plain_end: Optional[int] = Field(default=None, ge=0)
    category: Category
    message: str
    fix_text: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0, le=1)

    rule_id: str
    sub_category: Optional[str] = None
    severity: Optional[Severity] = None
    title: Optional[str] = None
    alternatives: List[str] = Field(default_factory=list)
    reasoning: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _validate_offsets(self) -> "RawFinding":
        if (self.plain_start is None) != (self.plain_end is None):
            raise ValueError("plain_start and plain_end must be provided together")
        if self.plain_start is not None and self.plain_end is not None:
            if self.plain_end <= self.plain_start:
                raise ValueError("plain_end must be greater than plain_start")
            if not self.matched_text:
                raise ValueError("located findings require matched_text")
        return self

    @property
    def is_document_level(self) -> bool:
        return self.plain_start is None


class TierResult(BaseModel):
    """Findings produced by one analyzer tier within a cycle."""

    source: TierName
    findings: List[RawFinding] = Field(default_factory=list)
    cached: bool = False
    skipped: bool = False
    failed: List[str] = Field(default_factory=list)
    calls: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")


__all__ = [
    "Category",
    "RawFinding",
    "Severity",
    "TIER_NAMES",
    "TierName",
    "TierResult",
]
