from __future__ import annotations

from typing import Any, Callable

import pytest

from core.config import get_settings


def _paragraph(text: str) -> dict[str, Any]:
    if not text:
        return {"type": "paragraph"}
    return {"type": "paragraph", "content": [{"type": "text", "text": text}]}


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    # Process-wide singletons must not leak between tests.
    from services.analysis_runner import reset_services

    monkeypatch.delenv("USAGE_STORE_PATH", raising=False)
    monkeypatch.delenv("CACHE_STORE_PATH", raising=False)
    monkeypatch.setenv("ENABLE_AI", "false")
    monkeypatch.setenv("ENABLE_SEO", "false")
    get_settings.cache_clear()
    reset_services()
    yield
    get_settings.cache_clear()
    reset_services()


@pytest.fixture
def make_doc() -> Callable[..., dict[str, Any]]:
    """Build a ``doc`` tree with one paragraph per argument."""

    def _make(*paragraphs: str) -> dict[str, Any]:
        return {"type": "doc", "content": [_paragraph(text) for text in paragraphs]}

    return _make
