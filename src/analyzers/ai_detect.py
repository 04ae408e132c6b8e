"""LLM issue detection (ai_detect tier)."""

from __future__ import annotations

import json
import logging
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from analyzers.base import Analyzer
from analyzers.context import AnalysisContext
from analyzers.llm import (
    ChatModelLike,
    LLMAnalyzerConfig,
    ainvoke_structured,
    build_messages,
    init_chat_model,
    invoke_structured,
    load_system_prompt,
)
from editor.identity import find_occurrences
from schemas.internal.findings import RawFinding

logger = logging.getLogger(__name__)

CONTEXT_MAX_CHARS = 40

_FALLBACK_PROMPT = (
    "You are a copy editor. Return ONLY JSON of the form "
    '{"issues": [{"category": "spelling|grammar|style|seo|tone", "match_text": "...", '
    '"message": "...", "fix": "... or null", "confidence": 0.0, '
    '"context_before": "...", "context_after": "..."}]}. '
    "Report at most {{max_issues}} issues. match_text must appear verbatim in the text."
)


class _DetectedIssue(BaseModel):
    category: Literal["spelling", "grammar", "style", "seo", "tone"]
    match_text: str
    message: str
    fix: Optional[str] = None
    confidence: float = Field(ge=0, le=1)
    context_before: str = ""
    context_after: str = ""

    model_config = ConfigDict(extra="ignore")

    @field_validator("context_before")
    @classmethod
    def _trim_before(cls, value: str) -> str:
        return value[-CONTEXT_MAX_CHARS:] if value else ""

    @field_validator("context_after")
    @classmethod
    def _trim_after(cls, value: str) -> str:
        return value[:CONTEXT_MAX_CHARS] if value else ""


class _DetectionResponse(BaseModel):
    issues: List[_DetectedIssue] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class AIDetectAnalyzer(Analyzer):
    """Asks a chat model for issues the rule-based tiers cannot see."""

    name = "ai_detect"
    tier = "ai_detect"

    def __init__(
        self,
        *,
        llm: ChatModelLike | None = None,
        config: LLMAnalyzerConfig | None = None,
        min_chars: int = 50,
        max_chars: int = 2000,
        max_issues: int = 5,
    ) -> None:
        if llm is None and config is None:
            raise ValueError("config is required when llm is not provided")
        self._llm = llm
        self._config = config
        self._min_chars = min_chars
        self._max_chars = max_chars
        self._max_issues = max_issues

    def config(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "name": self.name,
            "version": self.version,
            "max_chars": self._max_chars,
            "max_issues": self._max_issues,
        }
        if self._config is not None:
            payload["llm"] = self._config.fingerprint()
        return payload

    def _model(self) -> ChatModelLike:
        if self._llm is None:
            assert self._config is not None
            self._llm = init_chat_model(self._config)
        return self._llm

    def _eligible(self, text: str) -> bool:
        return len(text.strip()) >= self._min_chars

    def _messages(self, text: str, context: AnalysisContext) -> object:
        system_prompt = load_system_prompt("ai_detect_system", _FALLBACK_PROMPT).replace(
            "{{max_issues}}", str(self._max_issues)
        )
        payload = {
            "text": text[: self._max_chars],
            "title": context.effective_title,
            "target_keyword": context.metadata.target_keyword,
            "topic": context.topic,
            "tone": context.tone,
        }
        return build_messages(system_prompt, json.dumps(payload, ensure_ascii=False))

    def run(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        if not self._eligible(text):
            return []
        response = invoke_structured(
            self._model(), self._messages(text, context), _DetectionResponse
        )
        return self._to_findings(response, text)

    async def arun(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        if not self._eligible(text):
            return []
        response = await ainvoke_structured(
            self._model(), self._messages(text, context), _DetectionResponse
        )
        return self._to_findings(response, text)

    def _to_findings(self, response: _DetectionResponse, text: str) -> List[RawFinding]:
        window = text[: self._max_chars]
        findings: List[RawFinding] = []
        for issue in response.issues[: self._max_issues]:
            start = locate_issue(window, issue.match_text, issue.context_before, issue.context_after)
            if start is None:
                logger.debug("Dropping unlocatable AI issue: %r", issue.match_text)
                continue
            findings.append(
                RawFinding(
                    matched_text=issue.match_text,
                    plain_start=start,
                    plain_end=start + len(issue.match_text),
                    category=issue.category,
                    sub_category="ai-detected",
                    rule_id=f"ai/{issue.category}",
                    title="AI suggestion",
                    message=issue.message,
                    fix_text=issue.fix,
                    confidence=issue.confidence,
                )
            )
        return findings


def locate_issue(text: str, match_text: str, before: str = "", after: str = "") -> Optional[int]:
    """Offset of ``match_text``, preferring the occurrence framed by its context."""
    if not match_text:
        return None
    if before or after:
        framed = find_occurrences(text, before + match_text + after)
        if framed:
            return framed[0] + len(before)
    bare = find_occurrences(text, match_text)
    return bare[0] if bare else None


__all__ = ["AIDetectAnalyzer", "locate_issue"]
