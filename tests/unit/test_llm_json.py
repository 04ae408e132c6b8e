from __future__ import annotations

import pytest
from pydantic import BaseModel

from utils.llm_json import extract_json_object, parse_llm_json


class _Payload(BaseModel):
    issues: list[str]


def test_extract_from_fenced_block() -> None:
    text = 'Here you go:\n```json\n{"issues": ["a"]}\n```\nThanks.'

    assert extract_json_object(text) == {"issues": ["a"]}


def test_extract_skips_non_object_prefix() -> None:
    text = 'Result {not json} then {"issues": []} trailing'

    assert extract_json_object(text) == {"issues": []}


def test_missing_object_raises() -> None:
    with pytest.raises(ValueError):
        extract_json_object("no json here")


def test_parse_validates_schema() -> None:
    assert parse_llm_json('{"issues": ["x"]}', _Payload).issues == ["x"]
    with pytest.raises(ValueError):
        parse_llm_json('{"issues": 3}', _Payload)
