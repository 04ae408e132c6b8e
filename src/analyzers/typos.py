"""Dictionary-driven typo and repeated-word checks (fast tier)."""

from __future__ import annotations

import re
from typing import List

from analyzers.base import Analyzer
from analyzers.context import AnalysisContext
from schemas.internal.findings import RawFinding

COMMON_TYPOS: dict[str, str] = {
    "teh": "the",
    "recieve": "receive",
    "recieved": "received",
    "definately": "definitely",
    "occured": "occurred",
    "occurence": "occurrence",
    "seperate": "separate",
    "untill": "until",
    "wich": "which",
    "accomodate": "accommodate",
    "occassion": "occasion",
    "tommorrow": "tomorrow",
    "tommorow": "tomorrow",
    "neccessary": "necessary",
    "embarass": "embarrass",
    "begining": "beginning",
    "beleive": "believe",
    "calender": "calendar",
    "enviroment": "environment",
    "goverment": "government",
    "independant": "independent",
    "publically": "publicly",
    "truely": "truly",
    "wierd": "weird",
    "alot": "a lot",
    "thier": "their",
    "becuase": "because",
    "adress": "address",
}

INTENTIONAL_REPEATS = frozenset({"very", "really", "so", "no", "ha", "bye"})

_TYPO_RE = re.compile(
    r"\b(" + "|".join(sorted(map(re.escape, COMMON_TYPOS), key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
_REPEATED_RE = re.compile(r"\b(\w+)(\s+)(\1)\b", re.IGNORECASE)


def preserve_case(original: str, replacement: str) -> str:
    """Apply the capitalisation pattern of ``original`` to ``replacement``."""
    if not original or not replacement:
        return replacement
    if len(original) > 1 and original.isupper():
        return replacement.upper()
    if original[0].isupper():
        return replacement[0].upper() + replacement[1:]
    return replacement


class TypoAnalyzer(Analyzer):
    name = "typos"
    tier = "fast"

    def run(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        findings: List[RawFinding] = []
        for match in _TYPO_RE.finditer(text):
            word = match.group(0)
            correction = preserve_case(word, COMMON_TYPOS[word.lower()])
            findings.append(
                RawFinding(
                    matched_text=word,
                    plain_start=match.start(),
                    plain_end=match.end(),
                    category="spelling",
                    sub_category="typo",
                    rule_id="spelling/common-typo",
                    title="Spelling",
                    message=f'"{word}" looks like a typo for "{correction}".',
                    fix_text=correction,
                )
            )
        return findings


class RepeatedWordAnalyzer(Analyzer):
    name = "repeated_words"
    tier = "fast"

    def run(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        findings: List[RawFinding] = []
        for match in _REPEATED_RE.finditer(text):
            first = match.group(1)
            if first.lower() in INTENTIONAL_REPEATS or first.isdigit():
                continue
            findings.append(
                RawFinding(
                    matched_text=match.group(0),
                    plain_start=match.start(),
                    plain_end=match.end(),
                    category="grammar",
                    sub_category="repetition",
                    rule_id="grammar/repeated-word",
                    title="Repeated word",
                    message=f'The word "{first}" is repeated.',
                    fix_text=first,
                )
            )
        return findings


__all__ = ["COMMON_TYPOS", "RepeatedWordAnalyzer", "TypoAnalyzer", "preserve_case"]
