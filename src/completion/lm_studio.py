"""LM Studio (OpenAI-compatible local server) backend."""

from __future__ import annotations

import logging
from typing import Any

from openai import OpenAI

from completion.base import GenerationConfig, request_chat_completion
from config import DEFAULT_LM_STUDIO_BASE_URL, DEFAULT_LM_STUDIO_MODEL

logger = logging.getLogger(__name__)

# LM Studio ignores the key but the SDK insists on one
LOCAL_API_KEY = "lm-studio"


class LMStudioProvider:
    """Sends prompts to a local OpenAI-compatible server."""

    name = "lm-studio"

    def __init__(
        self,
        base_url: str = DEFAULT_LM_STUDIO_BASE_URL,
        model: str = DEFAULT_LM_STUDIO_MODEL,
        config: GenerationConfig | None = None,
        client: Any | None = None,
    ) -> None:
        self.base_url = base_url or DEFAULT_LM_STUDIO_BASE_URL
        self.model = model or DEFAULT_LM_STUDIO_MODEL
        self.config = config or GenerationConfig()
        self.client: Any = client or OpenAI(
            base_url=self.base_url, api_key=LOCAL_API_KEY
        )

    def complete(self, prompt: str) -> str:
        logger.info(f"Requesting completion from {self.base_url} (model {self.model})")
        return request_chat_completion(
            self.client,
            provider=self.name,
            model=self.model,
            prompt=prompt,
            config=self.config,
        )

    def __repr__(self) -> str:
        return f"<LMStudioProvider base_url={self.base_url!r} model={self.model!r}>"
