"""Document-level SEO checks (deep tier, gated by the ``seo`` feature)."""

from __future__ import annotations

import re
from typing import List, Optional

from analyzers.base import Analyzer
from analyzers.context import AnalysisContext, tokenize_words
from schemas.internal.findings import RawFinding

TITLE_MIN_CHARS = 30
TITLE_MAX_CHARS = 60
META_MIN_CHARS = 120
META_MAX_CHARS = 160
KEYWORD_DENSITY_MIN = 0.5
KEYWORD_DENSITY_MAX = 2.5
MIN_CONTENT_WORDS = 300


def keyword_density(text: str, keyword: str) -> float:
    """Keyword occurrences per hundred words."""
    words = tokenize_words(text)
    if not words or not keyword.strip():
        return 0.0
    pattern = re.compile(r"\b" + re.escape(keyword.strip()) + r"\b", re.IGNORECASE)
    return len(pattern.findall(text)) * 100.0 / len(words)


def _contains(haystack: Optional[str], keyword: str) -> bool:
    return bool(haystack) and keyword.lower() in (haystack or "").lower()


class SeoAnalyzer(Analyzer):
    name = "seo"
    tier = "deep"
    feature = "seo"

    def run(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        findings: List[RawFinding] = []
        findings.extend(self._title_checks(context))
        findings.extend(self._meta_checks(context))
        findings.extend(self._keyword_checks(text, context))
        findings.extend(self._structure_checks(text, context))
        return findings

    def _title_checks(self, context: AnalysisContext) -> List[RawFinding]:
        title = context.effective_title
        keyword = context.metadata.target_keyword
        if not title:
            return [_seo("seo/title-missing", "title", "Add a title to the document.", "error")]
        findings: List[RawFinding] = []
        if len(title) < TITLE_MIN_CHARS:
            findings.append(
                _seo(
                    "seo/title-too-short",
                    "title",
                    f"Title is {len(title)} characters; aim for {TITLE_MIN_CHARS}-{TITLE_MAX_CHARS}.",
                )
            )
        elif len(title) > TITLE_MAX_CHARS:
            findings.append(
                _seo(
                    "seo/title-too-long",
                    "title",
                    f"Title is {len(title)} characters and may be truncated in search results.",
                )
            )
        if keyword and not _contains(title, keyword):
            findings.append(
                _seo(
                    "seo/title-missing-keyword",
                    "title",
                    f'Include the target keyword "{keyword}" in the title.',
                )
            )
        return findings

    def _meta_checks(self, context: AnalysisContext) -> List[RawFinding]:
        meta = context.metadata.meta_description
        keyword = context.metadata.target_keyword
        if not meta:
            return [_seo("seo/meta-missing", "meta", "Add a meta description.")]
        findings: List[RawFinding] = []
        if len(meta) < META_MIN_CHARS:
            findings.append(
                _seo(
                    "seo/meta-too-short",
                    "meta",
                    f"Meta description is {len(meta)} characters; aim for {META_MIN_CHARS}-{META_MAX_CHARS}.",
                )
            )
        elif len(meta) > META_MAX_CHARS:
            findings.append(
                _seo(
                    "seo/meta-too-long",
                    "meta",
                    f"Meta description is {len(meta)} characters and may be truncated.",
                )
            )
        if keyword and not _contains(meta, keyword):
            findings.append(
                _seo(
                    "seo/meta-missing-keyword",
                    "meta",
                    f'Include the target keyword "{keyword}" in the meta description.',
                )
            )
        return findings

    def _keyword_checks(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        keyword = context.metadata.target_keyword
        if not keyword:
            return []
        findings: List[RawFinding] = []
        density = keyword_density(text, keyword)
        if density < KEYWORD_DENSITY_MIN:
            findings.append(
                _seo(
                    "seo/keyword-density-low",
                    "keyword",
                    f'"{keyword}" density is {density:.1f}%. Use it a little more often.',
                    "suggestion",
                )
            )
        elif density > KEYWORD_DENSITY_MAX:
            findings.append(
                _seo(
                    "seo/keyword-density-high",
                    "keyword",
                    f'"{keyword}" density is {density:.1f}%. This may read as keyword stuffing.',
                )
            )
        if not _contains(context.first_paragraph, keyword):
            findings.append(
                _seo(
                    "seo/no-keyword-in-first-paragraph",
                    "keyword",
                    f'Mention "{keyword}" in the first paragraph.',
                    "suggestion",
                )
            )
        return findings

    def _structure_checks(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        findings: List[RawFinding] = []
        word_count = len(tokenize_words(text))
        if word_count < MIN_CONTENT_WORDS:
            findings.append(
                _seo(
                    "seo/content-too-short",
                    "content",
                    f"Content has {word_count} words; aim for at least {MIN_CONTENT_WORDS}.",
                    "suggestion",
                )
            )
        h1_count = context.h1_count
        if h1_count == 0:
            findings.append(_seo("seo/no-h1", "structure", "Add a top-level (H1) heading."))
        elif h1_count > 1:
            findings.append(
                _seo(
                    "seo/multiple-h1s",
                    "structure",
                    f"Found {h1_count} H1 headings; use a single H1.",
                )
            )
        return findings


def _seo(rule_id: str, sub_category: str, message: str, severity: str = "warning") -> RawFinding:
    return RawFinding(
        category="seo",
        sub_category=sub_category,
        rule_id=rule_id,
        severity=severity,
        title="SEO",
        message=message,
    )


__all__ = ["SeoAnalyzer", "keyword_density"]
