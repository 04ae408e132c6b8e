"""Generation-tagged reducer for one analysis cycle at a time."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from editor.identity import DEFAULT_CONTEXT_WINDOW, build_suggestion
from engine.merge import merge_suggestions
from schemas.internal.findings import TierName, TierResult
from schemas.internal.metrics import ReadabilityMetrics
from schemas.internal.suggestions import Suggestion
from schemas.responses import AnalysisResult

logger = logging.getLogger(__name__)

PublishFn = Callable[[AnalysisResult], None]


class CycleState(str, Enum):
    IDLE = "idle"
    FAST_RUNNING = "fast_running"
    FAST_READY = "fast_ready"
    DEEP_RUNNING = "deep_running"
    ENHANCED_READY = "enhanced_ready"
    SETTLED = "settled"


class CycleReducer:
    """Applies ``(generation, TierResult)`` messages.

    Only messages for the current generation are applied; anything older is
    dropped on arrival. Every applied message re-merges all received tiers and
    publishes a fresh snapshot.
    """

    def __init__(
        self,
        *,
        confidence_threshold: float = 0.7,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
    ) -> None:
        self._confidence_threshold = confidence_threshold
        self._context_window = context_window
        self._listeners: List[PublishFn] = []
        self._reset(0, "")
        self._state = CycleState.IDLE
        self._snapshot = AnalysisResult(generation=0, state=CycleState.IDLE.value)

    def _reset(self, generation: int, text: str) -> None:
        self._generation = generation
        self._text = text
        self._expected: set[str] = set()
        self._received: Dict[str, List[Suggestion]] = {}
        self._skipped: set[str] = set()
        self._cached: List[TierName] = []
        self._warnings: List[str] = []
        self._metrics: Optional[ReadabilityMetrics] = None
        self._ai_skipped = False
        self._document_id: Optional[str] = None
        self._cycle_listener: Optional[PublishFn] = None
        self._threshold = self._confidence_threshold

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def snapshot(self) -> AnalysisResult:
        return self._snapshot

    def subscribe(self, listener: PublishFn) -> None:
        self._listeners.append(listener)

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def begin(
        self,
        generation: int,
        text: str,
        *,
        expected: Iterable[TierName],
        metrics: Optional[ReadabilityMetrics] = None,
        ai_skipped: bool = False,
        confidence_threshold: Optional[float] = None,
        document_id: Optional[str] = None,
        on_publish: Optional[PublishFn] = None,
    ) -> bool:
        """Start a cycle; returns False when ``generation`` is not newer."""
        if generation <= self._generation:
            logger.debug("Ignoring begin for stale generation %d", generation)
            return False
        self._reset(generation, text)
        self._expected = set(expected)
        self._metrics = metrics
        self._ai_skipped = ai_skipped
        self._document_id = document_id
        self._cycle_listener = on_publish
        if confidence_threshold is not None:
            self._threshold = confidence_threshold
        self._state = CycleState.FAST_RUNNING
        return True

    def accept(self, generation: int, result: TierResult) -> Optional[AnalysisResult]:
        """Apply a tier result; stale generations are dropped."""
        if generation != self._generation:
            logger.debug(
                "Dropping %s result from generation %d (current %d)",
                result.source,
                generation,
                self._generation,
            )
            return None
        if self._state in (CycleState.IDLE, CycleState.SETTLED):
            logger.debug("Dropping %s result for inactive cycle %d", result.source, generation)
            return None

        self._received[result.source] = [
            build_suggestion(
                finding,
                self._text,
                source=result.source,
                context_window=self._context_window,
            )
            for finding in result.findings
        ]
        if result.skipped:
            self._skipped.add(result.source)
        if result.cached:
            self._cached.append(result.source)
        for name in result.failed:
            self._warnings.append(f"{result.source} analyzer {name} failed")

        pending = self._expected - set(self._received)
        if result.source == "fast":
            self._state = CycleState.FAST_READY
            snapshot = self._publish()
            if pending:
                self._state = CycleState.DEEP_RUNNING
            else:
                self._state = CycleState.SETTLED
            return snapshot

        if not pending:
            self._state = CycleState.SETTLED
        elif result.source == "ai_enhance":
            self._state = CycleState.ENHANCED_READY
        else:
            self._state = CycleState.DEEP_RUNNING
        return self._publish()

    def settle(self, generation: int) -> Optional[AnalysisResult]:
        """Mark the cycle finished even if some expected tiers never reported."""
        if generation != self._generation:
            return None
        if self._state is CycleState.SETTLED:
            return self._snapshot
        self._state = CycleState.SETTLED
        return self._publish()

    def _publish(self) -> AnalysisResult:
        suggestions = merge_suggestions(
            self._received, confidence_threshold=self._threshold
        )
        self._snapshot = AnalysisResult(
            generation=self._generation,
            state=self._state.value,
            suggestions=suggestions,
            sources=[source for source in self._received if source not in self._skipped],
            cached_sources=list(self._cached),
            ai_skipped=self._ai_skipped,
            metrics=self._metrics,
            document_id=self._document_id,
            warnings=list(self._warnings),
        )
        for listener in [*self._listeners, self._cycle_listener]:
            if listener is None:
                continue
            try:
                listener(self._snapshot)
            except Exception:
                logger.warning("Publish listener failed", exc_info=True)
        return self._snapshot


__all__ = ["CycleReducer", "CycleState", "PublishFn"]
