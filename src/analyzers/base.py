"""Analyzer capability interface and tier registry."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Dict, Iterable, List, Optional

from schemas.internal.findings import TIER_NAMES, RawFinding, TierName

if TYPE_CHECKING:
    from analyzers.context import AnalysisContext

logger = logging.getLogger(__name__)


class Analyzer(ABC):
    """Pure function of ``(text, context, config)`` returning raw findings."""

    name: ClassVar[str]
    tier: ClassVar[TierName]
    version: ClassVar[str] = "1"
    feature: ClassVar[Optional[str]] = None

    @abstractmethod
    def run(self, text: str, context: "AnalysisContext") -> List[RawFinding]:
        raise NotImplementedError

    async def arun(self, text: str, context: "AnalysisContext") -> List[RawFinding]:
        return self.run(text, context)

    def config(self) -> dict[str, object]:
        """Configuration that affects output; part of the cache fingerprint."""
        return {"name": self.name, "version": self.version}


@dataclass(frozen=True)
class AnalyzerOutcome:
    analyzer: str
    findings: List[RawFinding] = field(default_factory=list)
    calls: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def safe_run(analyzer: Analyzer, text: str, context: "AnalysisContext") -> AnalyzerOutcome:
    """Run an analyzer, converting any failure into an empty result."""
    try:
        findings = list(analyzer.run(text, context))
    except Exception as exc:
        logger.warning("Analyzer %s failed: %s", analyzer.name, exc, exc_info=True)
        return AnalyzerOutcome(analyzer=analyzer.name, error=str(exc) or type(exc).__name__)
    return AnalyzerOutcome(analyzer=analyzer.name, findings=findings, calls=1)


async def safe_arun(
    analyzer: Analyzer, text: str, context: "AnalysisContext"
) -> AnalyzerOutcome:
    try:
        findings = list(await analyzer.arun(text, context))
    except Exception as exc:
        logger.warning("Analyzer %s failed: %s", analyzer.name, exc, exc_info=True)
        return AnalyzerOutcome(analyzer=analyzer.name, error=str(exc) or type(exc).__name__)
    return AnalyzerOutcome(analyzer=analyzer.name, findings=findings, calls=1)


class AnalyzerRegistry:
    """Mapping from tier name to the analyzers that run in that tier."""

    def __init__(self, analyzers: Iterable[Analyzer] = ()) -> None:
        self._by_tier: Dict[str, List[Analyzer]] = {tier: [] for tier in TIER_NAMES}
        for analyzer in analyzers:
            self.register(analyzer)

    def register(self, analyzer: Analyzer) -> None:
        tier = analyzer.tier
        if tier not in self._by_tier:
            raise ValueError(f"Unknown analyzer tier: {tier}")
        if any(existing.name == analyzer.name for existing in self._by_tier[tier]):
            raise ValueError(f"Analyzer already registered: {analyzer.name}")
        self._by_tier[tier].append(analyzer)

    def for_tier(
        self, tier: TierName, *, features: Iterable[str] | None = None
    ) -> List[Analyzer]:
        """Analyzers of ``tier``; feature-gated analyzers need their feature enabled."""
        enabled = set(features or ())
        return [
            analyzer
            for analyzer in self._by_tier.get(tier, [])
            if analyzer.feature is None or analyzer.feature in enabled
        ]

    def tiers(self) -> List[str]:
        return [tier for tier, analyzers in self._by_tier.items() if analyzers]

    def names(self) -> Dict[str, List[str]]:
        return {
            tier: [analyzer.name for analyzer in analyzers]
            for tier, analyzers in self._by_tier.items()
        }


__all__ = [
    "Analyzer",
    "AnalyzerOutcome",
    "AnalyzerRegistry",
    "safe_arun",
    "safe_run",
]
