"""Wordiness and passive-voice checks (fast tier)."""

from __future__ import annotations

import re
from typing import List

from analyzers.base import Analyzer
from analyzers.context import AnalysisContext
from analyzers.typos import preserve_case
from schemas.internal.findings import RawFinding

WORDY_PHRASES: dict[str, str] = {
    "in order to": "to",
    "due to the fact that": "because",
    "at this point in time": "now",
    "in the event that": "if",
    "for the purpose of": "for",
    "a large number of": "many",
    "has the ability to": "can",
    "in spite of the fact that": "although",
    "with regard to": "about",
    "at the present time": "currently",
    "in the near future": "soon",
    "despite the fact that": "although",
}

_WORDY_RE = re.compile(
    r"\b(" + "|".join(sorted(map(re.escape, WORDY_PHRASES), key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
_PASSIVE_RE = re.compile(r"\b(was|were|been|being|is|are|am)\s+(\w+ed)\b", re.IGNORECASE)


class WordinessAnalyzer(Analyzer):
    name = "wordiness"
    tier = "fast"

    def run(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        findings: List[RawFinding] = []
        for match in _WORDY_RE.finditer(text):
            phrase = match.group(0)
            fix = preserve_case(phrase, WORDY_PHRASES[phrase.lower()])
            findings.append(
                RawFinding(
                    matched_text=phrase,
                    plain_start=match.start(),
                    plain_end=match.end(),
                    category="style",
                    sub_category="wordiness",
                    rule_id="style/wordy-phrase",
                    title="Wordy phrase",
                    message=f'"{phrase}" can be shortened to "{fix}".',
                    fix_text=fix,
                )
            )
        return findings


class PassiveVoiceAnalyzer(Analyzer):
    name = "passive_voice"
    tier = "fast"

    def run(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        return [
            RawFinding(
                matched_text=match.group(0),
                plain_start=match.start(),
                plain_end=match.end(),
                category="style",
                sub_category="passive-voice",
                rule_id="style/passive-voice",
                title="Passive voice",
                message="Consider rewriting in the active voice.",
                severity="suggestion",
            )
            for match in _PASSIVE_RE.finditer(text)
        ]


__all__ = ["PassiveVoiceAnalyzer", "WORDY_PHRASES", "WordinessAnalyzer"]
