"""Merge and reconciliation of tiered analysis results."""

from engine.errors import InvalidInputError
from engine.merge import merge_suggestions
from engine.reducer import CycleReducer, CycleState
from engine.tiers import arun_tier, run_tier

__all__ = [
    "CycleReducer",
    "CycleState",
    "InvalidInputError",
    "arun_tier",
    "merge_suggestions",
    "run_tier",
]
