"""Document context handed to analyzers alongside the plain text."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Literal, Optional, Sequence

from schemas.internal.documents import DocumentMetadata, DocumentNode
from schemas.internal.suggestions import Suggestion

Tone = Literal["formal", "casual", "neutral"]

_WORD_RE = re.compile(r"[A-Za-z][A-Za-z'-]*")

STOPWORDS = frozenset(
    """
    about above after again against along among around because before being below
    between could during every first found great might never other should since
    still their there these thing things those though three through under until
    where which while whose would your yours really always almost
    """.split()
)
FORMAL_INDICATORS = frozenset(
    {
        "therefore",
        "furthermore",
        "moreover",
        "consequently",
        "thus",
        "hence",
        "nevertheless",
        "accordingly",
        "whereas",
        "notwithstanding",
    }
)
CASUAL_INDICATORS = frozenset(
    {
        "hey",
        "gonna",
        "wanna",
        "gotta",
        "awesome",
        "cool",
        "stuff",
        "kinda",
        "yeah",
        "lol",
        "ok",
        "okay",
        "super",
    }
)
FORMAL_DENSITY = 0.01
CASUAL_DENSITY = 0.02


@dataclass(frozen=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True)
class AnalysisContext:
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    title: Optional[str] = None
    headings: tuple[Heading, ...] = ()
    first_paragraph: str = ""
    topic: Optional[str] = None
    tone: Tone = "neutral"
    candidates: tuple[Suggestion, ...] = ()

    @property
    def effective_title(self) -> Optional[str]:
        return self.metadata.title or self.title

    @property
    def h1_count(self) -> int:
        return sum(1 for heading in self.headings if heading.level == 1)

    def with_candidates(self, candidates: Sequence[Suggestion]) -> "AnalysisContext":
        return replace(self, candidates=tuple(candidates))

    def fingerprint_payload(self) -> Dict[str, Any]:
        """Cache-relevant view of the context."""
        payload: Dict[str, Any] = {
            "metadata": self.metadata.model_dump(mode="json"),
            "title": self.title,
            "headings": [[heading.level, heading.text] for heading in self.headings],
        }
        if self.candidates:
            payload["candidates"] = [
                [candidate.id, candidate.primary_fix] for candidate in self.candidates
            ]
        return payload


def build_context(
    document: DocumentNode,
    metadata: DocumentMetadata | None,
    text: str,
) -> AnalysisContext:
    headings = tuple(_collect_headings(document))
    title = next((heading.text for heading in headings if heading.level == 1), None)
    return AnalysisContext(
        metadata=metadata or DocumentMetadata(),
        title=title,
        headings=headings,
        first_paragraph=_first_paragraph(document),
        topic=detect_topic(text),
        tone=detect_tone(text),
    )


def _collect_headings(document: DocumentNode) -> List[Heading]:
    headings: List[Heading] = []
    for node in document.iter_nodes():
        if node.type != "heading":
            continue
        text = node.text_content().strip()
        if not text:
            continue
        level = (node.attrs or {}).get("level", 1)
        try:
            level = int(level)
        except (TypeError, ValueError):
            level = 1
        headings.append(Heading(level=level, text=text))
    return headings


def _first_paragraph(document: DocumentNode) -> str:
    for node in document.iter_nodes():
        if node.type == "paragraph":
            text = node.text_content().strip()
            if text:
                return text
    return ""


def tokenize_words(text: str) -> List[str]:
    return _WORD_RE.findall(text)


def detect_topic(text: str) -> Optional[str]:
    """Most frequent content word longer than four characters."""
    words = [
        word.lower()
        for word in tokenize_words(text)
        if len(word) > 4 and word.lower() not in STOPWORDS
    ]
    if not words:
        return None
    return Counter(words).most_common(1)[0][0]


def detect_tone(text: str) -> Tone:
    words = [word.lower() for word in tokenize_words(text)]
    if not words:
        return "neutral"
    total = len(words)
    formal = sum(1 for word in words if word in FORMAL_INDICATORS)
    casual = sum(1 for word in words if word in CASUAL_INDICATORS)
    if formal / total > FORMAL_DENSITY:
        return "formal"
    if casual / total > CASUAL_DENSITY:
        return "casual"
    return "neutral"


__all__ = [
    "AnalysisContext",
    "Heading",
    "Tone",
    "build_context",
    "detect_tone",
    "detect_topic",
    "tokenize_words",
]
