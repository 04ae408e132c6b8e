from __future__ import annotations

import pytest

from analyzers import default_registry
from analyzers.base import Analyzer, AnalyzerRegistry, safe_run
from analyzers.context import AnalysisContext, build_context, detect_tone, detect_topic
from analyzers.grammar import ArticleAnalyzer, CapitalizationAnalyzer, wants_an
from analyzers.readability import (
    SentenceClarityAnalyzer,
    compute_readability_metrics,
    count_syllables,
    split_sentences,
)
from analyzers.seo import SeoAnalyzer, keyword_density
from analyzers.style import PassiveVoiceAnalyzer, WordinessAnalyzer
from analyzers.typos import RepeatedWordAnalyzer, TypoAnalyzer, preserve_case
from core.config import Settings
from schemas.internal.documents import DocumentMetadata, DocumentNode


class _Boom(Analyzer):
    name = "boom"
    tier = "fast"

    def run(self, text, context):
        raise RuntimeError("kaboom")


def _run(analyzer: Analyzer, text: str, context: AnalysisContext | None = None):
    return analyzer.run(text, context or AnalysisContext())


def test_typos_preserve_case() -> None:
    findings = _run(TypoAnalyzer(), "I recieve TEH mail and teh news.")

    assert [(f.matched_text, f.fix_text) for f in findings] == [
        ("recieve", "receive"),
        ("TEH", "THE"),
        ("teh", "the"),
    ]
    assert preserve_case("Alot", "a lot") == "A lot"


def test_repeated_words_skip_intentional_repeats() -> None:
    findings = _run(RepeatedWordAnalyzer(), "the the cat was very very happy")

    assert len(findings) == 1
    assert findings[0].matched_text == "the the"
    assert findings[0].fix_text == "the"
    assert (findings[0].plain_start, findings[0].plain_end) == (0, 7)


def test_article_agreement() -> None:
    findings = _run(ArticleAnalyzer(), "I ate a apple an hour ago and saw an unicorn.")

    assert [(f.matched_text, f.fix_text) for f in findings] == [("a", "an"), ("an", "a")]
    assert wants_an("honest")
    assert not wants_an("university")


def test_sentence_capitalization() -> None:
    findings = _run(CapitalizationAnalyzer(), "hello world. this is fine. iphone sales grew.")

    assert [f.fix_text for f in findings] == ["Hello", "This"]


def test_wordy_phrases() -> None:
    findings = _run(WordinessAnalyzer(), "In order to win, we trained due to the fact that we care.")

    assert [(f.matched_text, f.fix_text) for f in findings] == [
        ("In order to", "To"),
        ("due to the fact that", "because"),
    ]


def test_passive_voice_has_no_fix() -> None:
    findings = _run(PassiveVoiceAnalyzer(), "The ball was kicked by Sam.")

    assert len(findings) == 1
    assert findings[0].matched_text == "was kicked"
    assert findings[0].fix_text is None


def test_readability_metrics() -> None:
    metrics = compute_readability_metrics("The cat sat. The dog ran.")

    assert metrics.word_count == 6
    assert metrics.sentence_count == 2
    assert metrics.avg_sentence_length == 3.0
    assert metrics.flesch_reading_ease == 100.0
    assert count_syllables("table") == 2
    assert count_syllables("make") == 1


def test_split_sentences_trims_whitespace() -> None:
    spans = split_sentences("One two.  Three four!\nFive")

    assert [(s.text, s.start) for s in spans] == [
        ("One two.", 0),
        ("Three four!", 10),
        ("Five", 22),
    ]


def test_sentence_clarity_flags_long_sentences_and_conjunction_openers() -> None:
    long_sentence = " ".join(["word"] * 30) + "."
    text = f"{long_sentence} But we tried."

    rule_ids = [f.rule_id for f in _run(SentenceClarityAnalyzer(), text)]

    assert rule_ids == ["readability/long-sentence", "style/conjunction-start"]


def test_seo_reports_document_level_findings() -> None:
    findings = _run(SeoAnalyzer(), "Short body.")

    assert all(f.is_document_level for f in findings)
    assert {f.rule_id for f in findings} == {
        "seo/title-missing",
        "seo/meta-missing",
        "seo/content-too-short",
        "seo/no-h1",
    }


def test_seo_keyword_checks() -> None:
    context = AnalysisContext(
        metadata=DocumentMetadata(
            title="A practical guide to growing tomatoes at home",
            target_keyword="compost",
        ),
        first_paragraph="Tomatoes need sun.",
    )

    rule_ids = {f.rule_id for f in _run(SeoAnalyzer(), "Tomatoes need sun.", context)}

    assert "seo/title-missing-keyword" in rule_ids
    assert "seo/keyword-density-low" in rule_ids
    assert "seo/no-keyword-in-first-paragraph" in rule_ids
    assert keyword_density("apple pie and apple tart", "apple") == 40.0


def test_build_context_reads_headings_and_tone() -> None:
    document = DocumentNode.model_validate(
        {
            "type": "doc",
            "content": [
                {
                    "type": "heading",
                    "attrs": {"level": 1},
                    "content": [{"type": "text", "text": "Garden notes"}],
                },
                {"type": "paragraph", "content": [{"type": "text", "text": "Hey, this is awesome stuff."}]},
            ],
        }
    )

    context = build_context(document, None, "Garden notes\nHey, this is awesome stuff.")

    assert context.title == "Garden notes"
    assert context.h1_count == 1
    assert context.first_paragraph == "Hey, this is awesome stuff."
    assert context.tone == "casual"
    assert detect_tone("Therefore the result holds.") == "formal"
    assert detect_topic("gardens gardens soil") == "gardens"


def test_safe_run_degrades_failures() -> None:
    outcome = safe_run(_Boom(), "text", AnalysisContext())

    assert not outcome.ok
    assert outcome.findings == []
    assert outcome.error == "kaboom"


def test_registry_rejects_duplicates_and_gates_features() -> None:
    registry = AnalyzerRegistry([TypoAnalyzer(), SeoAnalyzer()])

    with pytest.raises(ValueError):
        registry.register(TypoAnalyzer())
    assert registry.for_tier("deep") == []
    assert [a.name for a in registry.for_tier("deep", features=["seo"])] == ["seo"]
    assert registry.tiers() == ["fast", "deep"]


def test_default_registry_without_model_has_no_ai_tiers() -> None:
    registry = default_registry(Settings(AI_MODEL=None))
    names = registry.names()

    assert names["fast"] == [
        "typos",
        "repeated_words",
        "articles",
        "capitalization",
        "wordiness",
        "passive_voice",
    ]
    assert names["deep"] == ["sentence_clarity", "readability_score", "seo"]
    assert names["ai_detect"] == []
    assert names["ai_enhance"] == []
