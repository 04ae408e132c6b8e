"""Pluggable analyzers grouped by tier."""

from __future__ import annotations

from typing import TYPE_CHECKING

from analyzers.base import Analyzer, AnalyzerOutcome, AnalyzerRegistry, safe_arun, safe_run
from analyzers.context import AnalysisContext, build_context

if TYPE_CHECKING:
    from analyzers.llm import ChatModelLike
    from core.config import Settings


def default_registry(
    settings: "Settings | None" = None,
    *,
    llm: "ChatModelLike | None" = None,
) -> AnalyzerRegistry:
    """Registry with the bundled reference analyzers for every tier.

    AI analyzers are registered only when a model is configured or ``llm`` is
    injected.
    """
    from analyzers.ai_detect import AIDetectAnalyzer
    from analyzers.ai_enhance import AIEnhanceAnalyzer
    from analyzers.grammar import ArticleAnalyzer, CapitalizationAnalyzer
    from analyzers.llm import LLMAnalyzerConfig
    from analyzers.readability import ReadabilityScoreAnalyzer, SentenceClarityAnalyzer
    from analyzers.seo import SeoAnalyzer
    from analyzers.style import PassiveVoiceAnalyzer, WordinessAnalyzer
    from analyzers.typos import RepeatedWordAnalyzer, TypoAnalyzer

    if settings is None:
        from core.config import get_settings

        settings = get_settings()

    registry = AnalyzerRegistry(
        [
            TypoAnalyzer(),
            RepeatedWordAnalyzer(),
            ArticleAnalyzer(),
            CapitalizationAnalyzer(),
            WordinessAnalyzer(),
            PassiveVoiceAnalyzer(),
            SentenceClarityAnalyzer(),
            ReadabilityScoreAnalyzer(),
            SeoAnalyzer(),
        ]
    )

    config = None
    if settings.ai_model:
        config = LLMAnalyzerConfig(
            model=settings.ai_model,
            model_provider=settings.ai_model_provider,
            temperature=settings.ai_temperature,
            timeout=settings.ai_timeout,
            max_tokens=settings.ai_max_tokens,
            max_retries=settings.ai_max_retries,
        )
    if llm is not None or config is not None:
        registry.register(
            AIDetectAnalyzer(
                llm=llm,
                config=config,
                min_chars=settings.ai_detect_min_chars,
                max_chars=settings.ai_detect_max_chars,
                max_issues=settings.ai_detect_max_issues,
            )
        )
        registry.register(AIEnhanceAnalyzer(llm=llm, config=config))
    return registry


__all__ = [
    "AnalysisContext",
    "Analyzer",
    "AnalyzerOutcome",
    "AnalyzerRegistry",
    "build_context",
    "default_registry",
    "safe_arun",
    "safe_run",
]
