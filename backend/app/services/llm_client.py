import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from openai import OpenAI, OpenAIError

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

GenerateFn = Callable[[str], str]


class GenerationError(Exception):
    """The external model call failed, timed out, or returned nothing usable."""


@dataclass(frozen=True)
class GenerationResult(Generic[T]):
    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    @classmethod
    def success(cls, value: T) -> "GenerationResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, reason: str) -> "GenerationResult[T]":
        return cls(error=reason or "unknown generation error")

    def or_else(self, fallback: Callable[[], T]) -> T:
        if self.ok:
            return self.value  # type: ignore[return-value]
        return fallback()


def _api_key() -> str:
    return os.getenv("OPENAI_API_KEY", "").strip()


def _model_name() -> str:
    return os.getenv("CAREER_LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"


def _timeout_seconds() -> float:
    return float(os.getenv("CAREER_LLM_TIMEOUT_SECONDS", "20"))


def _max_retries() -> int:
    return int(os.getenv("CAREER_LLM_MAX_RETRIES", "1"))


def _temperature() -> float:
    return float(os.getenv("CAREER_LLM_TEMPERATURE", "0.7"))


def generate(prompt: str, *, system_prompt: str | None = None) -> str:
    messages: list[dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return _complete(messages)


def generate_chat(messages: list[dict[str, str]], *, system_prompt: str) -> str:
    payload = [{"role": "system", "content": system_prompt}]
    payload.extend({"role": str(item["role"]), "content": str(item["content"])} for item in messages)
    return _complete(payload)


def _complete(messages: list[dict[str, Any]]) -> str:
    api_key = _api_key()
    if not api_key:
        raise GenerationError("OPENAI_API_KEY is not configured")

    try:
        client = OpenAI(api_key=api_key, timeout=_timeout_seconds(), max_retries=_max_retries())
        response = client.chat.completions.create(
            model=_model_name(),
            messages=messages,
            temperature=_temperature(),
        )
    except ValueError as exc:
        raise GenerationError(f"Invalid model configuration: {exc}") from exc
    except OpenAIError as exc:
        raise GenerationError(f"{type(exc).__name__}: {exc}") from exc

    if not response.choices:
        raise GenerationError("Model returned no choices")
    text = (response.choices[0].message.content or "").strip()
    if not text:
        raise GenerationError("Model returned an empty response")
    LOGGER.debug("Model %s returned %d characters", _model_name(), len(text))
    return text
