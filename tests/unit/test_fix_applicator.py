from __future__ import annotations

import copy

import pytest

from analyzers.context import AnalysisContext
from analyzers.typos import TypoAnalyzer
from editor.fix import (
    FIX_NOT_FOUND_MESSAGE,
    FixError,
    Selection,
    TextNotFoundError,
    apply_fix,
)
from editor.identity import build_suggestion
from editor.position import plain_text
from schemas.internal.findings import RawFinding


def _typo_suggestions(text: str, *, context_window: int = 20):
    findings = TypoAnalyzer().run(text, AnalysisContext())
    return [
        build_suggestion(finding, text, source="fast", context_window=context_window)
        for finding in findings
    ]


def test_direct_mapping_replaces_recorded_range(make_doc) -> None:
    suggestion = _typo_suggestions("Teh cat sat.")[0]

    result = apply_fix(suggestion, make_doc("Teh cat sat."))

    assert plain_text(result.document) == "The cat sat."
    assert result.range.strategy == "direct"
    assert (result.range.tree_from, result.range.tree_to) == (1, 4)
    assert result.delta == 0


def test_search_mapping_after_text_inserted_before_range(make_doc) -> None:
    suggestion = _typo_suggestions("Teh cat sat.")[0]

    result = apply_fix(suggestion, make_doc("Oh. Teh cat sat."))

    assert result.range.strategy == "search"
    assert result.range.plain_start == 4
    assert plain_text(result.document) == "Oh. The cat sat."


def test_search_mapping_across_new_block(make_doc) -> None:
    suggestion = _typo_suggestions("Teh cat sat.")[0]

    result = apply_fix(suggestion, make_doc("New intro.", "Teh cat sat."))

    assert result.range.strategy == "search"
    assert (result.range.tree_from, result.range.tree_to) == (13, 16)
    assert result.document.model_dump(exclude_none=True)["content"][1] == {
        "type": "paragraph",
        "content": [{"type": "text", "text": "The cat sat."}],
    }


def test_context_mapping_disambiguates_repeated_text(make_doc) -> None:
    suggestion = _typo_suggestions("Teh cat sat. Teh dog ran.", context_window=4)[1]
    assert (suggestion.context_before, suggestion.context_after) == ("at. ", " dog")

    result = apply_fix(suggestion, make_doc("A dog ran. Teh cat sat. Teh dog ran."))

    assert result.range.strategy == "context"
    assert result.range.plain_start == 24
    assert plain_text(result.document) == "A dog ran. Teh cat sat. The dog ran."


def test_stale_context_falls_back_to_nearest_occurrence(make_doc) -> None:
    suggestion = _typo_suggestions("Teh cat sat. Teh dog ran.", context_window=4)[1]

    result = apply_fix(suggestion, make_doc("Teh one. Teh two."))

    assert result.range.strategy == "search"
    assert result.range.plain_start == 9


def test_missing_text_raises_text_not_found(make_doc) -> None:
    suggestion = _typo_suggestions("Teh cat sat.")[0]

    with pytest.raises(TextNotFoundError) as info:
        apply_fix(suggestion, make_doc("The cat sat."))

    assert str(info.value) == FIX_NOT_FOUND_MESSAGE
    assert info.value.suggestion_id == suggestion.id


def test_selection_after_range_shifts_by_delta(make_doc) -> None:
    suggestion = _typo_suggestions("Teh cat sat.")[0]
    document = make_doc("Teh cat sat.")

    after = apply_fix(suggestion, document, "These", selection=Selection(8, 10))
    before = apply_fix(suggestion, document, "These", selection=Selection(1, 1))
    spanning = apply_fix(suggestion, document, "These", selection=Selection(2, 8))

    assert after.delta == 2
    assert after.selection == Selection(10, 12)
    assert before.selection == Selection(1, 1)
    assert spanning.selection == Selection(2, 10)
    assert plain_text(after.document) == "These cat sat."


def test_fix_spanning_marked_text_nodes() -> None:
    document = {
        "type": "doc",
        "content": [
            {
                "type": "paragraph",
                "content": [
                    {"type": "text", "text": "Te"},
                    {"type": "text", "text": "h cat", "marks": [{"type": "bold"}]},
                ],
            }
        ],
    }
    suggestion = _typo_suggestions("Teh cat")[0]

    result = apply_fix(suggestion, document)

    assert result.document.model_dump(exclude_none=True)["content"][0]["content"] == [
        {"type": "text", "text": "The"},
        {"type": "text", "text": " cat", "marks": [{"type": "bold"}]},
    ]


def test_range_crossing_blocks_is_rejected(make_doc) -> None:
    text = "Hello\nWorld"
    finding = RawFinding(
        matched_text="o\nW",
        plain_start=4,
        plain_end=7,
        category="grammar",
        rule_id="grammar/test",
        message="Joined words.",
        fix_text="o W",
    )
    suggestion = build_suggestion(finding, text, source="fast")

    with pytest.raises(FixError) as info:
        apply_fix(suggestion, make_doc("Hello", "World"))

    assert not isinstance(info.value, TextNotFoundError)


def test_input_document_is_not_mutated(make_doc) -> None:
    document = make_doc("Teh cat sat.")
    snapshot = copy.deepcopy(document)

    apply_fix(_typo_suggestions("Teh cat sat.")[0], document)

    assert document == snapshot


def test_suggestions_without_fix_or_range_are_rejected(make_doc) -> None:
    text = "The ball was kicked."
    passive = build_suggestion(
        RawFinding(
            matched_text="was kicked",
            plain_start=9,
            plain_end=19,
            category="style",
            rule_id="style/passive-voice",
            message="Passive.",
        ),
        text,
        source="fast",
    )
    global_suggestion = build_suggestion(
        RawFinding(category="seo", rule_id="seo/no-h1", message="Add an H1."),
        text,
        source="deep",
    )

    with pytest.raises(FixError):
        apply_fix(passive, make_doc(text))
    with pytest.raises(FixError):
        apply_fix(global_suggestion, make_doc(text), "Title")
    assert plain_text(apply_fix(passive, make_doc(text), "got kicked").document) == (
        "The ball got kicked."
    )
