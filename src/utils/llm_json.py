"""Parse JSON payloads out of free-form LLM output."""

from __future__ import annotations

import json
import re
from typing import Any, Iterator, TypeVar

from pydantic import BaseModel, ValidationError

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_DECODER = json.JSONDecoder()

ModelT = TypeVar("ModelT", bound=BaseModel)


def extract_json_object(text: str) -> dict[str, Any]:
    """Return the first JSON object found in ``text``.

    Fenced code blocks are scanned before the raw text.
    """
    source = text or ""
    for chunk in [*_fenced_blocks(source), source]:
        found = _first_object(chunk)
        if found is not None:
            return found
    raise ValueError("No JSON object found in LLM response")


def parse_llm_json(text: str, schema: type[ModelT]) -> ModelT:
    payload = extract_json_object(text)
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"LLM JSON did not match {schema.__name__}") from exc


def _fenced_blocks(text: str) -> Iterator[str]:
    for match in _FENCE_RE.finditer(text):
        yield match.group(1)


def _first_object(text: str) -> dict[str, Any] | None:
    idx = text.find("{")
    while idx != -1:
        try:
            value, _ = _DECODER.raw_decode(text, idx)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, dict):
            return value
        idx = text.find("{", idx + 1)
    return None


__all__ = ["extract_json_object", "parse_llm_json"]
