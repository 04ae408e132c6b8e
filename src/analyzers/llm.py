"""Chat-model plumbing shared by the AI analyzers.

Call sites must tolerate missing credentials or providers: the analyzers run
behind ``safe_arun`` and degrade to an empty result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from pydantic import BaseModel

from utils.llm_json import parse_llm_json

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)

_PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"


class ChatModelLike(Protocol):
    def with_structured_output(self, schema: type[BaseModel]) -> Any: ...
    def invoke(self, input: object) -> Any: ...
    async def ainvoke(self, input: object) -> Any: ...


@dataclass(frozen=True)
class LLMAnalyzerConfig:
    model: str
    model_provider: str | None = None
    temperature: float = 0.3
    timeout: float | None = None
    max_tokens: int | None = None
    max_retries: int | None = 2

    def fingerprint(self) -> dict[str, object]:
        return {
            "model": self.model,
            "model_provider": self.model_provider,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }


def init_chat_model(config: LLMAnalyzerConfig) -> ChatModelLike:
    from langchain.chat_models import init_chat_model as _init

    kwargs: dict[str, Any] = {}
    if config.model_provider:
        kwargs["model_provider"] = config.model_provider
    if config.temperature is not None:
        kwargs["temperature"] = config.temperature
    if config.timeout is not None:
        kwargs["timeout"] = config.timeout
    if config.max_tokens is not None:
        kwargs["max_tokens"] = config.max_tokens
    if config.max_retries is not None:
        kwargs["max_retries"] = config.max_retries

    return _init(config.model, **kwargs)


def build_messages(system_prompt: str, user_prompt: str) -> "list[BaseMessage]":
    from langchain_core.messages import HumanMessage, SystemMessage

    return [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]


def invoke_structured(llm: ChatModelLike, messages: object, schema: type[ResponseT]) -> ResponseT:
    """Structured output first, then raw text parsed as JSON."""
    try:
        structured = llm.with_structured_output(schema)
        result = structured.invoke(messages)
        if isinstance(result, schema):
            return result
    except Exception:
        logger.debug("Structured output failed for %s", schema.__name__, exc_info=True)

    raw = llm.invoke(messages)
    return _parse_raw(raw, schema)


async def ainvoke_structured(
    llm: ChatModelLike, messages: object, schema: type[ResponseT]
) -> ResponseT:
    try:
        structured = llm.with_structured_output(schema)
        result = await structured.ainvoke(messages)
        if isinstance(result, schema):
            return result
    except Exception:
        logger.debug("Structured output failed for %s", schema.__name__, exc_info=True)

    raw = await llm.ainvoke(messages)
    return _parse_raw(raw, schema)


def _parse_raw(raw: object, schema: type[ResponseT]) -> ResponseT:
    content = getattr(raw, "content", raw)
    if not isinstance(content, str):
        content = str(content)
    return parse_llm_json(content, schema)


@lru_cache(maxsize=8)
def load_system_prompt(name: str, fallback: str) -> str:
    prompt_path = _PROMPTS_DIR / f"{name}.md"
    if prompt_path.exists():
        return prompt_path.read_text(encoding="utf-8").strip()
    return fallback


__all__ = [
    "ChatModelLike",
    "LLMAnalyzerConfig",
    "ainvoke_structured",
    "build_messages",
    "init_chat_model",
    "invoke_structured",
    "load_system_prompt",
]
