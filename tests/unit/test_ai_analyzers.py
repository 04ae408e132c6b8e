from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

import pytest

from analyzers.ai_detect import AIDetectAnalyzer, locate_issue
from analyzers.ai_enhance import AIEnhanceAnalyzer, should_enhance
from analyzers.context import AnalysisContext
from analyzers.style import WordinessAnalyzer
from editor.identity import build_suggestion
from schemas.internal.findings import RawFinding

DETECT_TEXT = "Their going to the market tomorrow to buy fresh apples and pears."


class DummyLLM:
    def __init__(self, payload: dict) -> None:
        self.content = json.dumps(payload)
        self.calls = 0

    def with_structured_output(self, schema):
        raise RuntimeError("structured output unsupported")

    def invoke(self, messages):
        self.calls += 1
        return SimpleNamespace(content=self.content)

    async def ainvoke(self, messages):
        self.calls += 1
        return SimpleNamespace(content=f"```json\n{self.content}\n```")


def _wordy_candidate(text: str = "In order to win we trained."):
    finding = WordinessAnalyzer().run(text, AnalysisContext())[0]
    return build_suggestion(finding, text, source="fast")


def test_ai_detect_locates_issues_and_drops_unknown_text() -> None:
    llm = DummyLLM(
        {
            "issues": [
                {
                    "category": "grammar",
                    "match_text": "Their",
                    "message": "Did you mean they're?",
                    "fix": "They're",
                    "confidence": 0.9,
                },
                {
                    "category": "style",
                    "match_text": "bananas",
                    "message": "Not in the text.",
                    "confidence": 0.8,
                },
            ]
        }
    )

    findings = AIDetectAnalyzer(llm=llm).run(DETECT_TEXT, AnalysisContext())

    assert len(findings) == 1
    finding = findings[0]
    assert finding.rule_id == "ai/grammar"
    assert (finding.plain_start, finding.plain_end) == (0, 5)
    assert finding.fix_text == "They're"
    assert finding.confidence == 0.9


def test_ai_detect_skips_short_text_without_calling_model() -> None:
    llm = DummyLLM({"issues": []})

    assert AIDetectAnalyzer(llm=llm, min_chars=50).run("Too short.", AnalysisContext()) == []
    assert llm.calls == 0


def test_ai_detect_async_path_parses_fenced_json() -> None:
    llm = DummyLLM(
        {
            "issues": [
                {
                    "category": "spelling",
                    "match_text": "pears",
                    "message": "Check this word.",
                    "confidence": 0.75,
                    "context_before": "apples and ",
                }
            ]
        }
    )

    findings = asyncio.run(AIDetectAnalyzer(llm=llm).arun(DETECT_TEXT, AnalysisContext()))

    assert [f.matched_text for f in findings] == ["pears"]
    assert findings[0].plain_start == DETECT_TEXT.index("pears")


def test_locate_issue_prefers_framed_occurrence() -> None:
    text = "a cat and a cat"

    assert locate_issue(text, "cat", "and a ", "") == 12
    assert locate_issue(text, "cat") == 2
    assert locate_issue(text, "dog") is None
    assert locate_issue(text, "") is None


def test_ai_enhance_rewrites_candidate_fix() -> None:
    candidate = _wordy_candidate()
    llm = DummyLLM(
        {
            "enhancements": [
                {
                    "id": candidate.id,
                    "enhanced_fix": "To",
                    "confidence": 0.9,
                    "should_replace": True,
                },
                {
                    "id": candidate.id,
                    "enhanced_fix": "Aiming to",
                    "confidence": 0.85,
                    "reasoning": "Keeps the intent explicit.",
                    "alternative_fixes": ["Aiming to", "So as to"],
                },
                {"id": "unknown-id-0", "enhanced_fix": "x", "confidence": 0.9},
                {
                    "id": candidate.id,
                    "enhanced_fix": "Hoping to",
                    "confidence": 0.9,
                    "should_replace": False,
                },
            ]
        }
    )
    context = AnalysisContext().with_candidates([candidate])

    findings = AIEnhanceAnalyzer(llm=llm).run("In order to win we trained.", context)

    assert len(findings) == 1
    finding = findings[0]
    assert finding.rule_id == candidate.rule_id
    assert (finding.plain_start, finding.plain_end) == (0, 11)
    assert finding.fix_text == "Aiming to"
    assert finding.alternatives == ["So as to"]
    assert finding.reasoning == "Keeps the intent explicit."

    enhanced = build_suggestion(finding, "In order to win we trained.", source="ai_enhance")
    assert enhanced.id == candidate.id


def test_ai_enhance_without_candidates_skips_model() -> None:
    llm = DummyLLM({"enhancements": []})

    assert asyncio.run(AIEnhanceAnalyzer(llm=llm).arun("Text.", AnalysisContext())) == []
    assert llm.calls == 0


def test_should_enhance_selection() -> None:
    text = "I saw their house and teh garden."
    spelling_context = build_suggestion(
        RawFinding(
            matched_text="their",
            plain_start=6,
            plain_end=11,
            category="spelling",
            rule_id="spelling/homophone",
            message="Check the homophone.",
            fix_text="there",
        ),
        text,
        source="fast",
    )
    plain_typo = build_suggestion(
        RawFinding(
            matched_text="teh",
            plain_start=22,
            plain_end=25,
            category="spelling",
            rule_id="spelling/common-typo",
            message="Typo.",
            fix_text="the",
        ),
        text,
        source="fast",
    )
    document_level = build_suggestion(
        RawFinding(category="seo", rule_id="seo/no-h1", message="Add an H1."),
        text,
        source="deep",
    )

    assert should_enhance(_wordy_candidate())
    assert should_enhance(spelling_context)
    assert not should_enhance(plain_typo)
    assert not should_enhance(document_level)


def test_ai_analyzers_need_a_model_or_config() -> None:
    with pytest.raises(ValueError):
        AIDetectAnalyzer()
    with pytest.raises(ValueError):
        AIEnhanceAnalyzer()
