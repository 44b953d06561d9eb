"""Azure OpenAI chat-completions backend."""

from __future__ import annotations

import logging
from typing import Any

from openai import AzureOpenAI

from completion.base import GenerationConfig, request_chat_completion

logger = logging.getLogger(__name__)


class AzureOpenAIProvider:
    """Sends prompts to an Azure OpenAI deployment."""

    name = "azure-openai"

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        deployment: str,
        api_version: str,
        config: GenerationConfig | None = None,
        client: Any | None = None,
    ) -> None:
        self.deployment = deployment
        self.config = config or GenerationConfig()
        self.client: Any = client or AzureOpenAI(
            azure_endpoint=endpoint, api_key=api_key, api_version=api_version
        )

    def complete(self, prompt: str) -> str:
        logger.info(f"Requesting completion from Azure deployment {self.deployment}")
        return request_chat_completion(
            self.client,
            provider=self.name,
            model=self.deployment,
            prompt=prompt,
            config=self.config,
        )

    def __repr__(self) -> str:
        return f"<AzureOpenAIProvider deployment={self.deployment!r}>"
