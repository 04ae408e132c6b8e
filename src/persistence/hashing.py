"""Hashing helpers for content fingerprints and cache keys."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any, Mapping


def sha256_bytes(data: bytes) -> str:
    """Return hex sha256 of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str) -> str:
    return sha256_bytes(text.encode("utf-8"))


def stable_json_dumps(payload: object) -> str:
    """Dump JSON with stable ordering for hashing."""
    return json.dumps(
        payload,
        ensure_ascii=True,
        sort_keys=True,
        separators=(",", ":"),
        default=_json_default,
    )


def hash_payload(payload: object) -> str:
    """Return sha256 hash of a JSON-serializable payload."""
    return sha256_bytes(stable_json_dumps(payload).encode("utf-8"))


def analysis_cache_key(
    stage: str,
    text: str,
    metadata: Mapping[str, Any] | None,
    flags: Mapping[str, Any],
    code_version: str | None = None,
) -> str:
    """Fingerprint of every input that affects one analyzer tier's output."""
    payload = {
        "stage": stage,
        "text_hash": sha256_text(text),
        "metadata": dict(metadata or {}),
        "flags": dict(flags),
    }
    if code_version:
        payload["code_version"] = code_version
    return hash_payload(payload)


def _json_default(value: object) -> str:
    if isinstance(value, Path):
        return str(value)
    if hasattr(value, "model_dump"):
        return stable_json_dumps(value.model_dump(mode="json"))
    return str(value)


__all__ = [
    "analysis_cache_key",
    "hash_payload",
    "sha256_bytes",
    "sha256_text",
    "stable_json_dumps",
]
