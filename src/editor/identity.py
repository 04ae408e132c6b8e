"""Stable suggestion identities and finding -> suggestion conversion."""

from __future__ import annotations

import re
from typing import List, Optional

from schemas.internal.findings import RawFinding, TierName
from schemas.internal.suggestions import OriginOffsets, Suggestion, SuggestionAction

WIDEN_THRESHOLD = 2
WIDEN_CHARS = 10
ID_PREFIX_LENGTH = 8
GLOBAL_SUFFIX = "global"
DEFAULT_CONTEXT_WINDOW = 20

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")

DEFAULT_SEVERITY = {
    "spelling": "error",
    "grammar": "error",
    "style": "suggestion",
    "readability": "suggestion",
    "seo": "warning",
    "tone": "suggestion",
}

DEFAULT_TITLES = {
    "spelling": "Spelling",
    "grammar": "Grammar",
    "style": "Style",
    "readability": "Readability",
    "seo": "SEO",
    "tone": "Tone",
}


def normalized_prefix(text: str, length: int = ID_PREFIX_LENGTH) -> str:
    """Lower-cased first ``length`` characters with non-alphanumerics removed."""
    return _NON_ALNUM_RE.sub("", text[:length].lower())


def find_occurrences(text: str, needle: str, *, ignore_case: bool = False) -> List[int]:
    """Start offsets of every (possibly overlapping) occurrence of ``needle``."""
    if not needle:
        return []
    haystack = text.lower() if ignore_case else text
    target = needle.lower() if ignore_case else needle
    positions: List[int] = []
    idx = haystack.find(target)
    while idx != -1:
        positions.append(idx)
        idx = haystack.find(target, idx + 1)
    return positions


def occurrence_index(full_plain_text: str, matched_text: str, plain_start: int) -> int:
    """Count case-insensitive occurrences of ``matched_text`` starting before ``plain_start``."""
    return sum(
        1
        for position in find_occurrences(full_plain_text, matched_text, ignore_case=True)
        if position < plain_start
    )


def widen_match(full_plain_text: str, start: int, end: int) -> tuple[int, int]:
    """Widen very short matches by ``WIDEN_CHARS`` on each side."""
    if end - start > WIDEN_THRESHOLD:
        return start, end
    return max(0, start - WIDEN_CHARS), min(len(full_plain_text), end + WIDEN_CHARS)


def build_global_id(rule_id: str) -> str:
    return f"{rule_id}-{GLOBAL_SUFFIX}"


def build_id(
    rule_id: str,
    matched_text: str,
    plain_start: Optional[int],
    full_plain_text: str,
) -> str:
    if plain_start is None:
        return build_global_id(rule_id)
    index = occurrence_index(full_plain_text, matched_text, plain_start)
    return f"{rule_id}-{normalized_prefix(matched_text)}-{index}"


def parse_occurrence_index(suggestion_id: str) -> Optional[int]:
    """Recover the trailing occurrence index from an id, if present."""
    _, _, tail = suggestion_id.rpartition("-")
    if tail.isdigit():
        return int(tail)
    return None


def build_suggestion(
    finding: RawFinding,
    full_plain_text: str,
    *,
    source: TierName,
    context_window: int = DEFAULT_CONTEXT_WINDOW,
) -> Suggestion:
    """Convert a raw finding into a suggestion with a content-derived id."""
    category = finding.category
    severity = finding.severity or DEFAULT_SEVERITY.get(category, "suggestion")
    title = finding.title or DEFAULT_TITLES.get(category, category.title())
    is_ai = source in ("ai_detect", "ai_enhance")

    if finding.is_document_level:
        return Suggestion(
            id=build_global_id(finding.rule_id),
            rule_id=finding.rule_id,
            category=category,
            sub_category=finding.sub_category,
            severity=severity,
            title=title,
            message=finding.message,
            actions=_build_actions(finding, document_level=True),
            source=source,
            ai_enhanced=source == "ai_enhance",
            ai_confidence=finding.confidence if is_ai else None,
            ai_reasoning=finding.reasoning if is_ai else None,
        )

    start = int(finding.plain_start or 0)
    end = int(finding.plain_end or start)
    original = full_plain_text[start:end] if end <= len(full_plain_text) else ""
    if not original:
        original = finding.matched_text

    widened_start, widened_end = widen_match(full_plain_text, start, end)
    return Suggestion(
        id=build_id(finding.rule_id, original, start, full_plain_text),
        rule_id=finding.rule_id,
        category=category,
        sub_category=finding.sub_category,
        severity=severity,
        title=title,
        message=finding.message,
        match_text=full_plain_text[widened_start:widened_end] or original,
        original_text=original,
        context_before=full_plain_text[max(0, start - context_window) : start],
        context_after=full_plain_text[end : end + context_window],
        occurrence_index=occurrence_index(full_plain_text, original, start),
        actions=_build_actions(finding, document_level=False),
        source_origin_offsets=OriginOffsets(start=start, end=end),
        source=source,
        ai_enhanced=source == "ai_enhance",
        ai_confidence=finding.confidence if is_ai else None,
        ai_reasoning=finding.reasoning if is_ai else None,
    )


def _build_actions(finding: RawFinding, *, document_level: bool) -> List[SuggestionAction]:
    actions: List[SuggestionAction] = []
    if finding.fix_text is not None:
        actions.append(fix_action(finding.fix_text, primary=True))
    seen = {finding.fix_text}
    for alternative in finding.alternatives:
        if alternative in seen:
            continue
        seen.add(alternative)
        actions.append(fix_action(alternative, primary=False))

    if not actions:
        if document_level:
            actions.append(
                SuggestionAction(
                    type="navigate",
                    label="Review document settings",
                    value=finding.sub_category or finding.category,
                )
            )
        else:
            actions.append(
                SuggestionAction(type="highlight", label="Show in text", value=finding.matched_text)
            )
    if finding.reasoning:
        actions.append(SuggestionAction(type="explain", label="Why?", value=finding.reasoning))
    return actions


def fix_action(value: str, *, primary: bool) -> SuggestionAction:
    label = f'Change to "{value}"' if value else "Remove"
    return SuggestionAction(type="fix", label=label, value=value, primary=primary)


__all__ = [
    "DEFAULT_CONTEXT_WINDOW",
    "build_global_id",
    "build_id",
    "build_suggestion",
    "find_occurrences",
    "fix_action",
    "normalized_prefix",
    "occurrence_index",
    "parse_occurrence_index",
    "widen_match",
]
