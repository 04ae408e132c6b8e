"""Document projection, suggestion identity and fix application."""

from editor.fix import (
    AppliedFix,
    FixError,
    Selection,
    TextNotFoundError,
    apply_fix,
    locate_suggestion,
)
from editor.identity import build_id, build_suggestion
from editor.position import (
    NOT_FOUND,
    OffsetIndex,
    build_index,
    plain_text,
    to_plain_offset,
    to_tree_position,
    to_tree_range,
)

__all__ = [
    "AppliedFix",
    "FixError",
    "NOT_FOUND",
    "OffsetIndex",
    "Selection",
    "TextNotFoundError",
    "apply_fix",
    "build_id",
    "build_index",
    "build_suggestion",
    "locate_suggestion",
    "plain_text",
    "to_plain_offset",
    "to_tree_position",
    "to_tree_range",
]
