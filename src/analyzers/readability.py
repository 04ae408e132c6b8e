"""Sentence clarity checks and readability metrics (deep tier)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from analyzers.base import Analyzer
from analyzers.context import AnalysisContext, tokenize_words
from schemas.internal.findings import RawFinding
from schemas.internal.metrics import ReadabilityMetrics

LONG_SENTENCE_WORDS = 25
VERY_LONG_SENTENCE_WORDS = 35
DIFFICULT_FLESCH_SCORE = 30.0
MIN_WORDS_FOR_SCORE = 100
WORDS_PER_MINUTE = 200
COMPLEX_WORD_SYLLABLES = 3

_SENTENCE_RE = re.compile(r"[^.!?\n]+(?:[.!?]+|$)", re.MULTILINE)
_CONJUNCTION_START_RE = re.compile(r"^(And|But|Or|So|Because|Yet)\b")
_VOWEL_GROUP_RE = re.compile(r"[aeiouy]+")


@dataclass(frozen=True)
class SentenceSpan:
    text: str
    start: int
    end: int

    @property
    def word_count(self) -> int:
        return len(tokenize_words(self.text))


def split_sentences(text: str) -> List[SentenceSpan]:
    """Sentence spans with surrounding whitespace trimmed."""
    spans: List[SentenceSpan] = []
    for match in _SENTENCE_RE.finditer(text):
        raw = match.group(0)
        stripped = raw.strip()
        if not stripped or not any(char.isalnum() for char in stripped):
            continue
        start = match.start() + (len(raw) - len(raw.lstrip()))
        spans.append(SentenceSpan(text=stripped, start=start, end=start + len(stripped)))
    return spans


def count_syllables(word: str) -> int:
    lowered = word.lower().strip("'")
    if not lowered:
        return 0
    if len(lowered) <= 3:
        return 1
    if lowered.endswith("e") and not lowered.endswith(("le", "ee")):
        lowered = lowered[:-1]
    return max(1, len(_VOWEL_GROUP_RE.findall(lowered)))


def compute_readability_metrics(text: str) -> ReadabilityMetrics:
    words = tokenize_words(text)
    sentences = split_sentences(text)
    word_count = len(words)
    sentence_count = len(sentences)
    syllables = [count_syllables(word) for word in words]
    syllable_count = sum(syllables)
    complex_words = sum(1 for count in syllables if count >= COMPLEX_WORD_SYLLABLES)

    if word_count and sentence_count:
        avg_sentence = word_count / sentence_count
        flesch = 206.835 - 1.015 * avg_sentence - 84.6 * (syllable_count / word_count)
    else:
        avg_sentence = 0.0
        flesch = 0.0

    return ReadabilityMetrics(
        word_count=word_count,
        sentence_count=sentence_count,
        syllable_count=syllable_count,
        complex_word_count=complex_words,
        avg_sentence_length=round(avg_sentence, 2),
        flesch_reading_ease=round(max(0.0, min(100.0, flesch)), 1),
        reading_time_minutes=round(word_count / WORDS_PER_MINUTE, 2),
    )


class SentenceClarityAnalyzer(Analyzer):
    name = "sentence_clarity"
    tier = "deep"

    def run(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        findings: List[RawFinding] = []
        for sentence in split_sentences(text):
            words = sentence.word_count
            if words > VERY_LONG_SENTENCE_WORDS:
                findings.append(
                    self._sentence_finding(
                        sentence,
                        rule_id="readability/very-long-sentence",
                        severity="warning",
                        message=f"This sentence has {words} words. Consider splitting it.",
                    )
                )
            elif words > LONG_SENTENCE_WORDS:
                findings.append(
                    self._sentence_finding(
                        sentence,
                        rule_id="readability/long-sentence",
                        severity="suggestion",
                        message=f"This sentence has {words} words. Shorter sentences read faster.",
                    )
                )

            conjunction = _CONJUNCTION_START_RE.match(sentence.text)
            if conjunction:
                findings.append(
                    RawFinding(
                        matched_text=conjunction.group(1),
                        plain_start=sentence.start,
                        plain_end=sentence.start + len(conjunction.group(1)),
                        category="style",
                        sub_category="conjunction-start",
                        rule_id="style/conjunction-start",
                        title="Sentence opener",
                        message="Starting a sentence with a conjunction can weaken it.",
                    )
                )
        return findings

    def _sentence_finding(
        self, sentence: SentenceSpan, *, rule_id: str, severity: str, message: str
    ) -> RawFinding:
        return RawFinding(
            matched_text=sentence.text,
            plain_start=sentence.start,
            plain_end=sentence.end,
            category="readability",
            sub_category="sentence-length",
            rule_id=rule_id,
            severity=severity,
            title="Long sentence",
            message=message,
        )


class ReadabilityScoreAnalyzer(Analyzer):
    name = "readability_score"
    tier = "deep"

    def run(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        metrics = compute_readability_metrics(text)
        if metrics.word_count < MIN_WORDS_FOR_SCORE:
            return []
        if metrics.flesch_reading_ease >= DIFFICULT_FLESCH_SCORE:
            return []
        return [
            RawFinding(
                category="readability",
                sub_category="score",
                rule_id="readability/difficult-text",
                severity="warning",
                title="Hard to read",
                message=(
                    f"Flesch reading ease is {metrics.flesch_reading_ease:.0f}. "
                    "Use shorter sentences and simpler words."
                ),
            )
        ]


__all__ = [
    "ReadabilityScoreAnalyzer",
    "SentenceClarityAnalyzer",
    "SentenceSpan",
    "compute_readability_metrics",
    "count_syllables",
    "split_sentences",
]
