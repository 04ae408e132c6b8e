"""Locate a suggestion in the current document and apply its fix.

Resolution runs three strategies in order and the first hit wins:

1. direct: the recorded offsets, accepted only if the current projection still
   holds the original text there;
2. search: literal occurrences of the original text; several occurrences with
   recorded context defer to the next step;
3. context: ``context_before + text + context_after``.

When the context no longer matches, the bare occurrence closest to the
recorded offset is used.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Mapping, Optional

from editor.identity import find_occurrences, parse_occurrence_index
from editor.position import (
    INLINE_LEAF_TYPES,
    LEAF_BLOCK_TYPES,
    OffsetIndex,
    build_index,
    coerce_document,
    range_crosses_block,
    to_tree_range,
)
from schemas.internal.documents import DocumentNode
from schemas.internal.suggestions import Suggestion

logger = logging.getLogger(__name__)

FIX_NOT_FOUND_MESSAGE = "Could not locate the text to fix. It may have been modified."

Strategy = Literal["direct", "search", "context"]


class FixError(Exception):
    """A fix could not be applied to the current document."""


class TextNotFoundError(FixError):
    """None of the resolution strategies located the suggestion's text."""

    def __init__(self, suggestion_id: str, message: str = FIX_NOT_FOUND_MESSAGE) -> None:
        super().__init__(message)
        self.suggestion_id = suggestion_id


@dataclass(frozen=True)
class Selection:
    from_: int
    to: int


@dataclass(frozen=True)
class ResolvedRange:
    plain_start: int
    plain_end: int
    tree_from: int
    tree_to: int
    strategy: Strategy


@dataclass(frozen=True)
class AppliedFix:
    document: DocumentNode
    range: ResolvedRange
    replacement: str
    delta: int
    selection: Optional[Selection] = None


def locate_suggestion(suggestion: Suggestion, index: OffsetIndex) -> ResolvedRange:
    """Resolve the live range of ``suggestion`` or raise ``TextNotFoundError``."""
    if suggestion.is_document_level or not suggestion.original_text:
        raise FixError(f"Suggestion {suggestion.id} is not tied to a text range")

    for strategy, finder in (
        ("direct", _direct_mapping),
        ("search", _search_mapping),
        ("context", _context_mapping),
        ("search", _nearest_occurrence),
    ):
        start = finder(suggestion, index.text)
        if start is None:
            continue
        end = start + len(suggestion.original_text)
        tree_range = to_tree_range(index, start, end)
        if tree_range is None:
            continue
        logger.debug("Resolved %s via %s mapping at %d", suggestion.id, strategy, start)
        return ResolvedRange(
            plain_start=start,
            plain_end=end,
            tree_from=tree_range[0],
            tree_to=tree_range[1],
            strategy=strategy,
        )

    raise TextNotFoundError(suggestion.id)


def apply_fix(
    suggestion: Suggestion,
    document: DocumentNode | Mapping[str, Any],
    replacement: Optional[str] = None,
    *,
    selection: Optional[Selection] = None,
) -> AppliedFix:
    """Replace the suggestion's live range and return a new document.

    The input document is never mutated.
    """
    text = replacement if replacement is not None else suggestion.primary_fix
    if text is None:
        raise FixError(f"Suggestion {suggestion.id} has no fix to apply")

    root = coerce_document(document)
    index = build_index(root)
    resolved = locate_suggestion(suggestion, index)
    if range_crosses_block(index, resolved.plain_start, resolved.plain_end):
        raise FixError("Fix range spans more than one block")

    payload = root.model_dump(exclude_none=True)
    container, content_start = _find_container(payload, 0, resolved.tree_from, resolved.tree_to)
    _splice_inline(container, content_start, resolved.tree_from, resolved.tree_to, text)
    updated = DocumentNode.model_validate(payload)

    delta = len(text) - (resolved.tree_to - resolved.tree_from)
    return AppliedFix(
        document=updated,
        range=resolved,
        replacement=text,
        delta=delta,
        selection=shift_selection(selection, resolved, delta),
    )


def shift_selection(
    selection: Optional[Selection], resolved: ResolvedRange, delta: int
) -> Optional[Selection]:
    """Shift a selection that sits after the edited range by ``delta``."""
    if selection is None:
        return None
    if selection.from_ >= resolved.tree_to:
        return Selection(selection.from_ + delta, selection.to + delta)
    if selection.to >= resolved.tree_to:
        return Selection(selection.from_, max(selection.from_, selection.to + delta))
    return selection


def _direct_mapping(suggestion: Suggestion, text: str) -> Optional[int]:
    offsets = suggestion.source_origin_offsets
    if offsets is None:
        return None
    if offsets.end > len(text) or offsets.end - offsets.start != len(suggestion.original_text):
        return None
    if text[offsets.start : offsets.end] != suggestion.original_text:
        return None
    return offsets.start


def _search_mapping(suggestion: Suggestion, text: str) -> Optional[int]:
    positions = find_occurrences(text, suggestion.original_text)
    if len(positions) > 1 and (suggestion.context_before or suggestion.context_after):
        return None
    return _pick_occurrence(suggestion, text, positions)


def _nearest_occurrence(suggestion: Suggestion, text: str) -> Optional[int]:
    return _pick_occurrence(suggestion, text, find_occurrences(text, suggestion.original_text))


def _pick_occurrence(suggestion: Suggestion, text: str, positions: List[int]) -> Optional[int]:
    if not positions:
        return None
    if len(positions) == 1:
        return positions[0]

    offsets = suggestion.source_origin_offsets
    if offsets is not None:
        return min(positions, key=lambda pos: (abs(pos - offsets.start), pos))

    nth = suggestion.occurrence_index
    if nth is None:
        nth = parse_occurrence_index(suggestion.id)
    if nth is not None:
        ranked = find_occurrences(text, suggestion.original_text, ignore_case=True)
        if nth < len(ranked) and ranked[nth] in positions:
            return ranked[nth]
    return positions[0]


def _context_mapping(suggestion: Suggestion, text: str) -> Optional[int]:
    before = suggestion.context_before
    after = suggestion.context_after
    if not before and not after:
        return None
    positions = find_occurrences(text, before + suggestion.original_text + after)
    if not positions:
        return None
    offsets = suggestion.source_origin_offsets
    if offsets is not None:
        anchor = offsets.start - len(before)
        start = min(positions, key=lambda pos: (abs(pos - anchor), pos))
    else:
        start = positions[0]
    return start + len(before)


def _dict_size(node: Mapping[str, Any]) -> int:
    node_type = node.get("type")
    if node_type == "text":
        return len(node.get("text") or "")
    if node_type in INLINE_LEAF_TYPES or node_type in LEAF_BLOCK_TYPES:
        return 1
    return 2 + sum(_dict_size(child) for child in node.get("content") or [])


def _is_container(node: Mapping[str, Any]) -> bool:
    node_type = node.get("type")
    return node_type != "text" and node_type not in INLINE_LEAF_TYPES


def _find_container(
    node: Dict[str, Any], content_start: int, tree_from: int, tree_to: int
) -> tuple[Dict[str, Any], int]:
    """Innermost node whose content fully contains ``[tree_from, tree_to)``."""
    pos = content_start
    for child in node.get("content") or []:
        size = _dict_size(child)
        if _is_container(child) and child.get("type") not in LEAF_BLOCK_TYPES:
            inner_start = pos + 1
            inner_end = pos + size - 1
            if inner_start <= tree_from and tree_to <= inner_end:
                return _find_container(child, inner_start, tree_from, tree_to)
        pos += size
    return node, content_start


def _splice_inline(
    container: Dict[str, Any],
    content_start: int,
    tree_from: int,
    tree_to: int,
    replacement: str,
) -> None:
    new_content: List[Dict[str, Any]] = []
    inserted = False
    pos = content_start
    for child in container.get("content") or []:
        size = _dict_size(child)
        child_start, child_end = pos, pos + size
        pos = child_end
        if child_end <= tree_from or child_start >= tree_to:
            new_content.append(child)
            continue
        if _is_container(child):
            raise FixError("Fix range spans more than one block")

        if child.get("type") == "text":
            value = child.get("text") or ""
            head = value[: max(0, tree_from - child_start)]
            tail = value[tree_to - child_start :] if tree_to < child_end else ""
            piece = head + replacement + tail if not inserted else tail
            inserted = True
            if piece:
                new_content.append({**child, "text": piece})
            continue

        if not inserted and replacement:
            new_content.append({"type": "text", "text": replacement})
        inserted = True

    container["content"] = new_content


__all__ = [
    "AppliedFix",
    "FIX_NOT_FOUND_MESSAGE",
    "FixError",
    "ResolvedRange",
    "Selection",
    "TextNotFoundError",
    "apply_fix",
    "locate_suggestion",
    "shift_selection",
]
