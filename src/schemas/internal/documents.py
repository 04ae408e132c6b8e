"""Rich-text document contracts (ProseMirror/TipTap JSON)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DocumentMark(BaseModel):
    """Inline formatting attached to a text node (bold, link, ...)."""

    type: str
    attrs: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")


class DocumentNode(BaseModel):
    """A single node of the editor document tree."""

    type: str
    text: Optional[str] = None
    content: Optional[List["DocumentNode"]] = None
    attrs: Optional[Dict[str, Any]] = None
    marks: Optional[List[DocumentMark]] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("type")
    @classmethod
    def _type_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("node type must not be empty")
        return value

    @model_validator(mode="after")
    def _validate_text_node(self) -> "DocumentNode":
        if self.type == "text":
            if not self.text:
                raise ValueError("text nodes must carry non-empty text")
            if self.content:
                raise ValueError("text nodes cannot have content")
        elif self.text is not None:
            raise ValueError(f"only text nodes carry text (got type={self.type!r})")
        return self

    @property
    def is_text(self) -> bool:
        return self.type == "text"

    def iter_nodes(self):
        """Depth-first iteration over this node and its descendants."""
        yield self
        for child in self.content or []:
            yield from child.iter_nodes()

    def text_content(self) -> str:
        """Concatenated text of all descendant text nodes, without separators."""
        if self.is_text:
            return self.text or ""
        return "".join(child.text_content() for child in self.content or [])


class DocumentMetadata(BaseModel):
    """Publishing metadata consulted by SEO and AI analyzers."""

    title: Optional[str] = None
    target_keyword: Optional[str] = None
    meta_description: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("title", "target_keyword", "meta_description")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None


DocumentNode.model_rebuild()


__all__ = ["DocumentMark", "DocumentMetadata", "DocumentNode"]
