"""
Contract shared by the completion backends.

A provider takes a prompt and returns generated text. It either returns a
string (possibly empty when the model produced nothing usable) or raises
``CompletionError``; callers treat both outcomes the same way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import openai

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant."


class CompletionError(Exception):
    """Raised when a provider call fails or returns a malformed response."""

    def __init__(self, message: str, provider: str) -> None:
        super().__init__(f"[{provider}] {message}")
        self.provider = provider


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters sent with every chat completion."""

    max_tokens: int = 800
    temperature: float = 0.7
    top_p: float = 0.95


@runtime_checkable
class CompletionProvider(Protocol):
    name: str

    def complete(self, prompt: str) -> str: ...


def build_chat_messages(prompt: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def request_chat_completion(
    client: Any,
    *,
    provider: str,
    model: str,
    prompt: str,
    config: GenerationConfig,
) -> str:
    """Run one chat completion through an ``openai`` client.

    Returns the first choice's content, or ``""`` when it is missing.

    Raises:
        CompletionError: on SDK errors or a response without choices.
    """
    try:
        response = client.chat.completions.create(
            model=model,
            messages=build_chat_messages(prompt),
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            top_p=config.top_p,
        )
    except openai.OpenAIError as e:
        raise CompletionError(f"request failed: {e}", provider=provider) from e

    choices = getattr(response, "choices", None)
    if not choices:
        raise CompletionError("response contained no choices", provider=provider)

    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if not content:
        logger.warning(f"{provider} returned an empty completion")
        return ""
    return str(content)
