"""LLM enhancement of rule-based suggestions (ai_enhance tier)."""

from __future__ import annotations

import json
import logging
import re
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field

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
from editor.identity import GLOBAL_SUFFIX
from schemas.internal.findings import RawFinding
from schemas.internal.suggestions import Suggestion

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 20
ENHANCED_CATEGORIES = frozenset({"seo", "style"})
CONTEXT_SENSITIVE_WORDS = re.compile(r"\b(their|there|its|your|to|too|two)\b", re.IGNORECASE)

_FALLBACK_PROMPT = (
    "You improve writing suggestions. Return ONLY JSON of the form "
    '{"enhancements": [{"id": "...", "enhanced_fix": "...", "confidence": 0.0, '
    '"reasoning": "...", "should_replace": true, "alternative_fixes": []}]}. '
    "Only use ids from the input."
)


class _Enhancement(BaseModel):
    id: str
    enhanced_fix: str
    confidence: float = Field(ge=0, le=1)
    reasoning: str = ""
    should_replace: bool = True
    alternative_fixes: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class _EnhancementResponse(BaseModel):
    enhancements: List[_Enhancement] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


def should_enhance(suggestion: Suggestion) -> bool:
    """Whether an LLM pass is likely to improve ``suggestion``."""
    if suggestion.ai_enhanced or suggestion.id.endswith(f"-{GLOBAL_SUFFIX}"):
        return False
    if suggestion.is_document_level:
        return False
    if suggestion.category in ENHANCED_CATEGORIES:
        return True
    if not suggestion.fix_actions:
        return True
    if suggestion.category == "spelling":
        return bool(CONTEXT_SENSITIVE_WORDS.search(suggestion.original_text))
    return False


class AIEnhanceAnalyzer(Analyzer):
    """Rewrites fixes of candidate suggestions found by earlier tiers.

    Candidates come from ``context.candidates``; each accepted enhancement is
    emitted with the candidate's rule and offsets so it collides on id and
    wins the merge.
    """

    name = "ai_enhance"
    tier = "ai_enhance"

    def __init__(
        self,
        *,
        llm: ChatModelLike | None = None,
        config: LLMAnalyzerConfig | None = None,
        max_candidates: int = MAX_CANDIDATES,
    ) -> None:
        if llm is None and config is None:
            raise ValueError("config is required when llm is not provided")
        self._llm = llm
        self._config = config
        self._max_candidates = max_candidates

    def config(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "name": self.name,
            "version": self.version,
            "max_candidates": self._max_candidates,
        }
        if self._config is not None:
            payload["llm"] = self._config.fingerprint()
        return payload

    def _model(self) -> ChatModelLike:
        if self._llm is None:
            assert self._config is not None
            self._llm = init_chat_model(self._config)
        return self._llm

    def select_candidates(self, context: AnalysisContext) -> List[Suggestion]:
        return [c for c in context.candidates if should_enhance(c)][: self._max_candidates]

    def _messages(self, candidates: Sequence[Suggestion], context: AnalysisContext) -> object:
        system_prompt = load_system_prompt("ai_enhance_system", _FALLBACK_PROMPT)
        payload = {
            "document": {
                "title": context.effective_title,
                "topic": context.topic,
                "tone": context.tone,
                "target_keyword": context.metadata.target_keyword,
            },
            "suggestions": [
                {
                    "id": candidate.id,
                    "category": candidate.category,
                    "message": candidate.message,
                    "text": candidate.original_text,
                    "context": f"{candidate.context_before}[{candidate.original_text}]{candidate.context_after}",
                    "current_fix": candidate.primary_fix,
                }
                for candidate in candidates
            ],
        }
        return build_messages(system_prompt, json.dumps(payload, ensure_ascii=False))

    def run(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        candidates = self.select_candidates(context)
        if not candidates:
            return []
        response = invoke_structured(
            self._model(), self._messages(candidates, context), _EnhancementResponse
        )
        return self._to_findings(response, candidates)

    async def arun(self, text: str, context: AnalysisContext) -> List[RawFinding]:
        candidates = self.select_candidates(context)
        if not candidates:
            return []
        response = await ainvoke_structured(
            self._model(), self._messages(candidates, context), _EnhancementResponse
        )
        return self._to_findings(response, candidates)

    def _to_findings(
        self, response: _EnhancementResponse, candidates: Sequence[Suggestion]
    ) -> List[RawFinding]:
        by_id = {candidate.id: candidate for candidate in candidates}
        findings: List[RawFinding] = []
        for enhancement in response.enhancements:
            candidate = by_id.get(enhancement.id)
            if candidate is None:
                logger.debug("Ignoring enhancement for unknown id %s", enhancement.id)
                continue
            if not enhancement.should_replace:
                continue
            if enhancement.enhanced_fix == candidate.primary_fix:
                continue
            offsets = candidate.source_origin_offsets
            assert offsets is not None
            findings.append(
                RawFinding(
                    matched_text=candidate.original_text,
                    plain_start=offsets.start,
                    plain_end=offsets.end,
                    category=candidate.category,
                    sub_category=candidate.sub_category,
                    severity=candidate.severity,
                    title=candidate.title,
                    rule_id=candidate.rule_id,
                    message=candidate.message,
                    fix_text=enhancement.enhanced_fix,
                    alternatives=[
                        alt for alt in enhancement.alternative_fixes if alt != enhancement.enhanced_fix
                    ],
                    confidence=enhancement.confidence,
                    reasoning=enhancement.reasoning or None,
                )
            )
        return findings


__all__ = ["AIEnhanceAnalyzer", "should_enhance"]
