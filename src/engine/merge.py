"""Merge suggestions from several tiers into one ordered list.

Rules:
- suggestions sharing an id collapse to the one from the highest-priority
  source; distinct fixes of the others survive as secondary fix actions;
- overlapping ranges in the same or a conflicting category keep only the
  higher-priority source (equal priority keeps both);
- AI findings below the confidence threshold are dropped first;
- the result is ordered by category, then by start offset, document-level
  entries last within their category.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Sequence

from editor.identity import fix_action
from schemas.internal.findings import TierName
from schemas.internal.suggestions import Suggestion

SOURCE_PRIORITY: Dict[str, int] = {
    "ai_enhance": 4,
    "deep": 3,
    "fast": 2,
    "ai_detect": 1,
}
AI_SOURCES = frozenset({"ai_detect", "ai_enhance"})
CATEGORY_ORDER = ("spelling", "grammar", "style", "readability", "seo", "tone")
CONFLICTING_CATEGORIES = frozenset(
    {
        frozenset({"spelling", "grammar"}),
        frozenset({"style", "grammar"}),
    }
)


def priority(suggestion: Suggestion) -> int:
    return SOURCE_PRIORITY.get(suggestion.source, 0)


def filter_low_confidence(
    suggestions: Iterable[Suggestion], threshold: float
) -> List[Suggestion]:
    kept: List[Suggestion] = []
    for suggestion in suggestions:
        if (
            suggestion.source in AI_SOURCES
            and suggestion.ai_confidence is not None
            and suggestion.ai_confidence < threshold
        ):
            continue
        kept.append(suggestion)
    return kept


def merge_by_id(suggestions: Iterable[Suggestion]) -> List[Suggestion]:
    """Collapse id collisions, keeping losers' fixes as secondary actions."""
    groups: Dict[str, List[Suggestion]] = {}
    for suggestion in suggestions:
        groups.setdefault(suggestion.id, []).append(suggestion)

    merged: List[Suggestion] = []
    for group in groups.values():
        if len(group) == 1:
            merged.append(group[0])
            continue
        ranked = sorted(group, key=lambda item: -priority(item))
        winner = ranked[0]
        actions = list(winner.actions)
        seen = {action.value for action in winner.fix_actions}
        for loser in ranked[1:]:
            for action in loser.fix_actions:
                if action.value in seen:
                    continue
                seen.add(action.value)
                actions.append(fix_action(action.value or "", primary=False))
        merged.append(winner.model_copy(update={"actions": actions}))
    return merged


def _conflicts(a: Suggestion, b: Suggestion) -> bool:
    if a.category == b.category:
        return True
    return frozenset({a.category, b.category}) in CONFLICTING_CATEGORIES


def resolve_overlaps(suggestions: Sequence[Suggestion]) -> List[Suggestion]:
    located = sorted(
        (s for s in suggestions if not s.is_document_level),
        key=lambda s: (s.plain_start, s.plain_end, s.id),
    )
    dropped: set[str] = set()
    for i, first in enumerate(located):
        if first.id in dropped:
            continue
        for second in located[i + 1 :]:
            if (second.plain_start or 0) >= (first.plain_end or 0):
                break
            if second.id in dropped or not _conflicts(first, second):
                continue
            first_rank, second_rank = priority(first), priority(second)
            if first_rank == second_rank:
                continue
            if first_rank > second_rank:
                dropped.add(second.id)
            else:
                dropped.add(first.id)
                break
    return [s for s in suggestions if s.id not in dropped]


def order_suggestions(suggestions: Iterable[Suggestion]) -> List[Suggestion]:
    def key(suggestion: Suggestion) -> tuple:
        try:
            category_rank = CATEGORY_ORDER.index(suggestion.category)
        except ValueError:
            category_rank = len(CATEGORY_ORDER)
        located = 0 if not suggestion.is_document_level else 1
        return (category_rank, located, suggestion.plain_start or 0, suggestion.id)

    return sorted(suggestions, key=key)


def merge_suggestions(
    batches: Mapping[TierName, Sequence[Suggestion]] | Iterable[Sequence[Suggestion]],
    *,
    confidence_threshold: float = 0.7,
) -> List[Suggestion]:
    """Full merge pipeline; recomputed from scratch on every call."""
    groups = batches.values() if isinstance(batches, Mapping) else batches
    flat = [suggestion for group in groups for suggestion in group]
    filtered = filter_low_confidence(flat, confidence_threshold)
    merged = merge_by_id(filtered)
    return order_suggestions(resolve_overlaps(merged))


__all__ = [
    "AI_SOURCES",
    "CATEGORY_ORDER",
    "SOURCE_PRIORITY",
    "filter_low_confidence",
    "merge_by_id",
    "merge_suggestions",
    "order_suggestions",
    "resolve_overlaps",
]
