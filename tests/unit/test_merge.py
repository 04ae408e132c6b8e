from __future__ import annotations

from typing import Optional

from editor.identity import fix_action
from engine.merge import (
    filter_low_confidence,
    merge_by_id,
    merge_suggestions,
    order_suggestions,
    resolve_overlaps,
)
from schemas.internal.suggestions import OriginOffsets, Suggestion


def _suggestion(
    suggestion_id: str,
    source: str,
    start: Optional[int],
    end: Optional[int],
    *,
    category: str = "spelling",
    fix: Optional[str] = None,
    confidence: Optional[float] = None,
) -> Suggestion:
    offsets = None if start is None else OriginOffsets(start=start, end=end)
    return Suggestion(
        id=suggestion_id,
        rule_id=suggestion_id.rsplit("-", 2)[0],
        category=category,
        severity="error",
        title="Check",
        message="Check this.",
        actions=[fix_action(fix, primary=True)] if fix is not None else [],
        source_origin_offsets=offsets,
        source=source,
        ai_confidence=confidence,
    )


def test_id_collision_keeps_higher_priority_and_secondary_fix() -> None:
    fast = _suggestion("spelling/x-teh-0", "fast", 0, 3, fix="The")
    enhanced = _suggestion("spelling/x-teh-0", "ai_enhance", 0, 3, fix="This", confidence=0.9)

    merged = merge_by_id([fast, enhanced])

    assert len(merged) == 1
    winner = merged[0]
    assert winner.source == "ai_enhance"
    assert [(a.value, a.primary) for a in winner.fix_actions] == [
        ("This", True),
        ("The", False),
    ]


def test_identical_fixes_are_not_duplicated() -> None:
    fast = _suggestion("spelling/x-teh-0", "fast", 0, 3, fix="The")
    deep = _suggestion("spelling/x-teh-0", "deep", 0, 3, fix="The")

    merged = merge_by_id([fast, deep])

    assert merged[0].source == "deep"
    assert [a.value for a in merged[0].fix_actions] == ["The"]


def test_overlap_in_same_category_keeps_higher_priority() -> None:
    fast = _suggestion("spelling/a-hello-0", "fast", 0, 5)
    deep = _suggestion("spelling/b-llo-0", "deep", 2, 6)

    assert [s.id for s in resolve_overlaps([fast, deep])] == ["spelling/b-llo-0"]


def test_overlap_with_conflicting_category_drops_lower_priority() -> None:
    fast = _suggestion("spelling/a-hello-0", "fast", 0, 5)
    detected = _suggestion("ai/grammar-lo-0", "ai_detect", 3, 8, category="grammar")

    assert [s.id for s in resolve_overlaps([fast, detected])] == ["spelling/a-hello-0"]


def test_overlap_with_equal_priority_keeps_both() -> None:
    first = _suggestion("spelling/a-hello-0", "fast", 0, 5)
    second = _suggestion("spelling/b-llo-0", "fast", 2, 6)

    assert len(resolve_overlaps([first, second])) == 2


def test_overlap_in_unrelated_categories_keeps_both() -> None:
    spelling = _suggestion("spelling/a-hello-0", "fast", 0, 5)
    readability = _suggestion("readability/long-hello-0", "deep", 0, 40, category="readability")

    assert len(resolve_overlaps([spelling, readability])) == 2


def test_adjacent_ranges_do_not_overlap() -> None:
    first = _suggestion("spelling/a-one-0", "fast", 0, 3)
    second = _suggestion("spelling/b-two-0", "deep", 3, 6)

    assert len(resolve_overlaps([first, second])) == 2


def test_ordering_by_category_then_position_with_document_level_last() -> None:
    suggestions = [
        _suggestion("seo/title-missing-global", "deep", None, None, category="seo"),
        _suggestion("seo/x-word-0", "deep", 40, 44, category="seo"),
        _suggestion("grammar/a-an-0", "fast", 2, 4, category="grammar"),
        _suggestion("spelling/b-teh-1", "fast", 30, 33),
        _suggestion("spelling/b-teh-0", "fast", 10, 13),
    ]

    ordered = [s.id for s in order_suggestions(suggestions)]

    assert ordered == [
        "spelling/b-teh-0",
        "spelling/b-teh-1",
        "grammar/a-an-0",
        "seo/x-word-0",
        "seo/title-missing-global",
    ]


def test_low_confidence_ai_suggestions_are_dropped() -> None:
    weak = _suggestion("ai/style-foo-0", "ai_detect", 0, 3, category="style", confidence=0.5)
    strong = _suggestion("ai/style-bar-0", "ai_detect", 5, 8, category="style", confidence=0.8)
    rule = _suggestion("style/x-baz-0", "fast", 10, 13, category="style")

    kept = [s.id for s in filter_low_confidence([weak, strong, rule], 0.7)]

    assert kept == ["ai/style-bar-0", "style/x-baz-0"]


def test_low_confidence_enhancement_does_not_hide_rule_suggestion() -> None:
    fast = _suggestion("spelling/x-teh-0", "fast", 0, 3, fix="The")
    weak = _suggestion("spelling/x-teh-0", "ai_enhance", 0, 3, fix="This", confidence=0.3)

    merged = merge_suggestions({"fast": [fast], "ai_enhance": [weak]}, confidence_threshold=0.7)

    assert len(merged) == 1
    assert merged[0].source == "fast"
    assert merged[0].primary_fix == "The"


def test_merge_accepts_plain_batches_and_is_repeatable() -> None:
    batches = [
        [_suggestion("spelling/x-teh-0", "fast", 0, 3, fix="The")],
        [_suggestion("grammar/a-an-0", "deep", 5, 7, category="grammar")],
    ]

    assert merge_suggestions(batches) == merge_suggestions(batches)
    assert [s.id for s in merge_suggestions(batches)] == ["spelling/x-teh-0", "grammar/a-an-0"]
