from __future__ import annotations

from analyzers.context import AnalysisContext
from analyzers.typos import TypoAnalyzer
from editor.identity import (
    build_id,
    build_suggestion,
    normalized_prefix,
    occurrence_index,
    parse_occurrence_index,
)
from schemas.internal.findings import RawFinding


def _finding(text: str, start: int, end: int, **overrides) -> RawFinding:
    payload = {
        "matched_text": text[start:end],
        "plain_start": start,
        "plain_end": end,
        "category": "grammar",
        "rule_id": "test/pronoun",
        "message": "Check this word.",
    }
    payload.update(overrides)
    return RawFinding(**payload)


def test_typo_becomes_spelling_suggestion_with_fix() -> None:
    text = "Teh cat sat."
    findings = TypoAnalyzer().run(text, AnalysisContext())

    assert len(findings) == 1
    suggestion = build_suggestion(findings[0], text, source="fast")

    assert suggestion.category == "spelling"
    assert suggestion.match_text == "Teh"
    assert suggestion.id == "spelling/common-typo-teh-0"
    assert [(a.type, a.value) for a in suggestion.fix_actions] == [("fix", "The")]
    assert suggestion.primary_fix == "The"


def test_repeated_text_gets_distinct_occurrence_ids() -> None:
    text = "It is raining. Take it with you."
    first = build_suggestion(_finding(text, 0, 2), text, source="fast")
    second = build_suggestion(_finding(text, 20, 22), text, source="fast")

    assert first.id == "test/pronoun-it-0"
    assert second.id == "test/pronoun-it-1"
    assert (first.occurrence_index, second.occurrence_index) == (0, 1)


def test_short_matches_are_widened_for_display_only() -> None:
    text = "It is raining. Take it with you."
    suggestion = build_suggestion(_finding(text, 20, 22), text, source="fast")

    assert suggestion.original_text == "it"
    assert suggestion.match_text == text[10:32]
    assert suggestion.source_origin_offsets is not None
    assert suggestion.source_origin_offsets.start == 20


def test_inserting_earlier_occurrence_shifts_id_by_one() -> None:
    before = "Take it with you."
    after = "Sit. Take it with you."

    original = build_id("test/pronoun", "it", 5, before)
    shifted = build_id("test/pronoun", "it", 10, after)

    assert original == "test/pronoun-it-0"
    assert shifted == "test/pronoun-it-1"


def test_ids_are_deterministic() -> None:
    text = "Teh cat sat. Teh dog ran."
    assert build_id("r", "Teh", 13, text) == build_id("r", "Teh", 13, text)
    assert occurrence_index(text, "teh", 13) == 1


def test_normalized_prefix_strips_punctuation() -> None:
    assert normalized_prefix("Don't stop!") == "dontst"
    assert normalized_prefix("ABC") == "abc"


def test_document_level_findings_use_global_id() -> None:
    finding = RawFinding(
        category="seo",
        sub_category="title",
        rule_id="seo/title-missing",
        message="Add a title to the document.",
    )
    suggestion = build_suggestion(finding, "Body text.", source="deep")

    assert suggestion.id == "seo/title-missing-global"
    assert suggestion.is_document_level
    assert [(a.type, a.value) for a in suggestion.actions] == [("navigate", "title")]
    assert build_id("seo/title-missing", "", None, "") == "seo/title-missing-global"


def test_alternatives_become_secondary_fixes() -> None:
    text = "This is teh end."
    finding = _finding(
        text,
        8,
        11,
        category="spelling",
        rule_id="spelling/common-typo",
        fix_text="the",
        alternatives=["the", "tea"],
    )
    suggestion = build_suggestion(finding, text, source="fast")

    assert [(a.value, a.primary) for a in suggestion.fix_actions] == [
        ("the", True),
        ("tea", False),
    ]


def test_ai_fields_only_for_ai_sources() -> None:
    text = "Their going home."
    finding = _finding(
        text,
        0,
        5,
        category="grammar",
        rule_id="ai/grammar",
        fix_text="They're",
        confidence=0.9,
        reasoning="Contraction of they are.",
    )

    enhanced = build_suggestion(finding, text, source="ai_enhance")
    plain = build_suggestion(finding, text, source="fast")

    assert enhanced.ai_enhanced is True
    assert enhanced.ai_confidence == 0.9
    assert enhanced.actions[-1].type == "explain"
    assert plain.ai_enhanced is False
    assert plain.ai_confidence is None


def test_parse_occurrence_index() -> None:
    assert parse_occurrence_index("spelling/common-typo-teh-3") == 3
    assert parse_occurrence_index("seo/title-missing-global") is None


def test_short_match_id_counts_raw_occurrences_not_widened_text() -> None:
    text = "Bananas and a apple."
    finding = _finding(
        text,
        12,
        13,
        rule_id="grammar/article-agreement",
        fix_text="an",
    )

    suggestion = build_suggestion(finding, text, source="fast")

    assert suggestion.id == "grammar/article-agreement-a-4"
    assert suggestion.original_text == "a"
    assert suggestion.match_text == text[2:20]
