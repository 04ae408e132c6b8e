"""Article agreement and sentence capitalisation checks (fast tier)."""

from __future__ import annotations

import re
from typing import List

from analyzers.base import Analyzer
from analyzers.context import AnalysisContext
from analyzers.typos import preserve_case
from schemas.internal.findings import RawFinding

_ARTICLE_RE = re.compile(r"\b(a|an)\s+([A-Za-z][\w-]*)", re.IGNORECASE)
_SENTENCE_START_RE = re.compile(r"(?:^|(?<=[.!?])[ \t]+|(?<=\n))([a-z][a-z']*)\b")

CONSONANT_SOUND_PREFIXES = ("uni", "use", "usu", "uti", "eu", "one", "once", "ure")
VOWEL_SOUND_PREFIXES = ("hour", "honest", "honor", "honour", "heir")
CAPITALIZATION_EXCEPTIONS = frozenset({"iphone", "ipad", "ebay", "etc", "e.g", "i.e"})


def wants_an(word: str) -> bool:
    """Whether ``word`` takes "an" (starts with a vowel sound)."""
    lowered = word.lower()
    if lowered.startswith(VOWEL_SOUND_PREFIXES):
        return True
    if lowered.startswith(CONSONANT_SOUND_PREFIXES):
        return False
    return lowered[:1] in "aeiou"


class ArticleAnalyzer(Analyzer):
    name = "articles"
    tier = "fast"

    def run(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        findings: List[RawFinding] = []
        for match in _ARTICLE_RE.finditer(text):
            article, word = match.group(1), match.group(2)
            expected = "an" if wants_an(word) else "a"
            if article.lower() == expected:
                continue
            fix = preserve_case(article, expected)
            findings.append(
                RawFinding(
                    matched_text=article,
                    plain_start=match.start(1),
                    plain_end=match.end(1),
                    category="grammar",
                    sub_category="article",
                    rule_id="grammar/article-agreement",
                    title="Article",
                    message=f'Use "{fix}" before "{word}".',
                    fix_text=fix,
                )
            )
        return findings


class CapitalizationAnalyzer(Analyzer):
    name = "capitalization"
    tier = "fast"

    def run(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        findings: List[RawFinding] = []
        for match in _SENTENCE_START_RE.finditer(text):
            word = match.group(1)
            if word.lower() in CAPITALIZATION_EXCEPTIONS:
                continue
            fix = word[0].upper() + word[1:]
            findings.append(
                RawFinding(
                    matched_text=word,
                    plain_start=match.start(1),
                    plain_end=match.end(1),
                    category="grammar",
                    sub_category="capitalization",
                    rule_id="grammar/sentence-capitalization",
                    title="Capitalization",
                    message="Sentences should start with a capital letter.",
                    fix_text=fix,
                )
            )
        return findings


__all__ = ["ArticleAnalyzer", "CapitalizationAnalyzer", "wants_an"]
