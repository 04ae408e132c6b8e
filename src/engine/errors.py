"""Engine error taxonomy."""

from __future__ import annotations


class InvalidInputError(ValueError):
    """Input rejected before any analyzer runs."""


__all__ = ["InvalidInputError"]
