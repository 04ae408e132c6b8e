from __future__ import annotations

from analyzers.context import AnalysisContext
from analyzers.typos import TypoAnalyzer
from engine.reducer import CycleReducer, CycleState
from schemas.internal.findings import TIER_NAMES, RawFinding, TierResult

TEXT = "Teh cat sat."


def _fast_result() -> TierResult:
    return TierResult(source="fast", findings=TypoAnalyzer().run(TEXT, AnalysisContext()))


def _seo_result() -> TierResult:
    finding = RawFinding(category="seo", rule_id="seo/no-h1", message="Add an H1.")
    return TierResult(source="deep", findings=[finding])


def test_begin_requires_newer_generation() -> None:
    reducer = CycleReducer()

    assert reducer.state is CycleState.IDLE
    assert reducer.begin(1, TEXT, expected=TIER_NAMES)
    assert not reducer.begin(1, TEXT, expected=TIER_NAMES)
    assert reducer.state is CycleState.FAST_RUNNING


def test_fast_result_publishes_before_deep_tiers() -> None:
    reducer = CycleReducer()
    reducer.begin(1, TEXT, expected=TIER_NAMES)

    snapshot = reducer.accept(1, _fast_result())

    assert snapshot is not None
    assert snapshot.state == "fast_ready"
    assert [s.id for s in snapshot.suggestions] == ["spelling/common-typo-teh-0"]
    assert reducer.state is CycleState.DEEP_RUNNING


def test_state_walks_to_settled() -> None:
    reducer = CycleReducer()
    reducer.begin(1, TEXT, expected=TIER_NAMES)
    reducer.accept(1, _fast_result())

    deep = reducer.accept(1, _seo_result())
    enhanced = reducer.accept(1, TierResult(source="ai_enhance", skipped=True))
    settled = reducer.accept(1, TierResult(source="ai_detect", skipped=True))

    assert deep is not None and deep.state == "deep_running"
    assert enhanced is not None and enhanced.state == "enhanced_ready"
    assert settled is not None and settled.state == "settled"
    assert settled.sources == ["fast", "deep"]
    assert [s.id for s in settled.suggestions] == [
        "spelling/common-typo-teh-0",
        "seo/no-h1-global",
    ]


def test_only_fast_expected_settles_immediately() -> None:
    reducer = CycleReducer()
    reducer.begin(1, TEXT, expected=("fast",))

    snapshot = reducer.accept(1, _fast_result())

    assert snapshot is not None and snapshot.state == "fast_ready"
    assert reducer.state is CycleState.SETTLED
    assert reducer.accept(1, _seo_result()) is None


def test_stale_generation_results_are_dropped() -> None:
    reducer = CycleReducer()
    reducer.begin(1, TEXT, expected=TIER_NAMES)
    reducer.accept(1, _fast_result())
    reducer.begin(2, "A clean sentence.", expected=TIER_NAMES)

    assert reducer.accept(1, _seo_result()) is None
    assert reducer.settle(1) is None
    assert reducer.snapshot.generation == 1

    fresh = reducer.accept(2, TierResult(source="fast"))
    assert fresh is not None
    assert fresh.generation == 2
    assert fresh.suggestions == []


def test_failed_analyzers_become_warnings_and_cache_hits_are_reported() -> None:
    reducer = CycleReducer()
    reducer.begin(1, TEXT, expected=("fast", "deep"))
    reducer.accept(1, TierResult(source="fast", findings=_fast_result().findings, cached=True))

    snapshot = reducer.accept(1, TierResult(source="deep", failed=["seo"]))

    assert snapshot is not None
    assert snapshot.warnings == ["deep analyzer seo failed"]
    assert snapshot.cached_sources == ["fast"]
    assert snapshot.state == "settled"


def test_settle_closes_cycle_with_missing_tiers() -> None:
    reducer = CycleReducer()
    reducer.begin(3, TEXT, expected=TIER_NAMES, ai_skipped=True, document_id="doc-1")
    reducer.accept(3, _fast_result())

    snapshot = reducer.settle(3)

    assert snapshot is not None
    assert snapshot.state == "settled"
    assert snapshot.ai_skipped is True
    assert snapshot.document_id == "doc-1"
    assert reducer.settle(3) is snapshot


def test_listeners_receive_snapshots_and_failures_are_contained() -> None:
    reducer = CycleReducer()
    seen: list[str] = []
    per_cycle: list[int] = []

    def broken(_snapshot) -> None:
        raise RuntimeError("listener down")

    reducer.subscribe(broken)
    reducer.subscribe(lambda snapshot: seen.append(snapshot.state))
    reducer.begin(1, TEXT, expected=("fast",), on_publish=lambda s: per_cycle.append(s.generation))

    reducer.accept(1, _fast_result())
    reducer.begin(2, TEXT, expected=("fast",))
    reducer.accept(2, _fast_result())

    assert seen == ["fast_ready", "fast_ready"]
    assert per_cycle == [1]


def test_confidence_threshold_can_be_overridden_per_cycle() -> None:
    finding = RawFinding(
        matched_text="cat",
        plain_start=4,
        plain_end=7,
        category="style",
        rule_id="ai/style",
        message="Consider a more vivid word.",
        confidence=0.6,
    )
    reducer = CycleReducer(confidence_threshold=0.7)

    reducer.begin(1, TEXT, expected=("ai_detect",))
    strict = reducer.accept(1, TierResult(source="ai_detect", findings=[finding]))
    reducer.begin(2, TEXT, expected=("ai_detect",), confidence_threshold=0.5)
    lenient = reducer.accept(2, TierResult(source="ai_detect", findings=[finding]))

    assert strict is not None and strict.suggestions == []
    assert lenient is not None and [s.id for s in lenient.suggestions] == ["ai/style-cat-0"]
