"""Document-level readability metrics."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ReadabilityMetrics(BaseModel):
    word_count: int = Field(ge=0)
    sentence_count: int = Field(ge=0)
    syllable_count: int = Field(ge=0)
    complex_word_count: int = Field(ge=0)
    avg_sentence_length: float = Field(ge=0)
    flesch_reading_ease: float
    reading_time_minutes: float = Field(ge=0)

    model_config = ConfigDict(extra="forbid")


__all__ = ["ReadabilityMetrics"]
