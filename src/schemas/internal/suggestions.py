"""Suggestion contracts published by the engine."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .findings import Category, Severity, TierName

ActionType = Literal["fix", "highlight", "explain", "ignore", "navigate"]


class SuggestionAction(BaseModel):
    type: ActionType
    label: str
    value: Optional[str] = None
    primary: bool = False

    model_config = ConfigDict(extra="forbid")


class OriginOffsets(BaseModel):
    """Plain-text offsets recorded when the suggestion was produced."""

    start: int = Field(ge=0)
    end: int = Field(ge=0)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _validate_range(self) -> "OriginOffsets":
        if self.end < self.start:
            raise ValueError("end must be >= start")
        return self


class Suggestion(BaseModel):
    """Stable unit of engine output.

    ``id`` is derived from the rule, the matched text and its occurrence
    index, never from raw offsets.
    """

    id: str
    rule_id: str
    category: Category
    sub_category: Optional[str] = None
    severity: Severity
    title: str
    message: str

    match_text: str = ""
    original_text: str = ""
    context_before: str = ""
    context_after: str = ""
    occurrence_index: Optional[int] = Field(default=None, ge=0)
    actions: List[SuggestionAction] = Field(default_factory=list)
    source_origin_offsets: Optional[OriginOffsets] = None

    source: TierName = "fast"
    ai_enhanced: bool = False
    ai_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    ai_reasoning: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @property
    def is_document_level(self) -> bool:
        return self.source_origin_offsets is None

    @property
    def plain_start(self) -> Optional[int]:
        offsets = self.source_origin_offsets
        return offsets.start if offsets else None

    @property
    def plain_end(self) -> Optional[int]:
        offsets = self.source_origin_offsets
        return offsets.end if offsets else None

    @property
    def fix_actions(self) -> List[SuggestionAction]:
        return [action for action in self.actions if action.type == "fix"]

    @property
    def primary_fix(self) -> Optional[str]:
        fixes = self.fix_actions
        for action in fixes:
            if action.primary:
                return action.value
        return fixes[0].value if fixes else None


__all__ = ["ActionType", "OriginOffsets", "Suggestion", "SuggestionAction"]
