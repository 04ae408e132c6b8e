"""External request schemas for analysis and fix runs."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from schemas.internal.documents import DocumentMetadata, DocumentNode
from schemas.internal.suggestions import Suggestion


class AnalysisOptions(BaseModel):
    """Per-run overrides. Unset fields fall back to settings."""

    enable_fast: bool | None = None
    enable_deep: bool | None = None
    enable_seo: bool | None = None
    enable_ai: bool | None = None
    ai_confidence_threshold: float | None = Field(default=None, ge=0, le=1)
    use_cache: bool | None = None

    model_config = ConfigDict(extra="forbid")


class AnalysisInput(BaseModel):
    document: DocumentNode
    metadata: Optional[DocumentMetadata] = None
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)
    user_id: Optional[str] = None
    document_id: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class SelectionInput(BaseModel):
    """Editor selection expressed in tree positions."""

    from_: int = Field(ge=0, alias="from")
    to: int = Field(ge=0)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @model_validator(mode="after")
    def _validate_order(self) -> "SelectionInput":
        if self.to < self.from_:
            raise ValueError("selection 'to' must be >= 'from'")
        return self


class FixRequest(BaseModel):
    document: DocumentNode
    suggestion: Suggestion
    replacement: Optional[str] = None
    selection: Optional[SelectionInput] = None

    model_config = ConfigDict(extra="forbid")


__all__ = ["AnalysisInput", "AnalysisOptions", "FixRequest", "SelectionInput"]
