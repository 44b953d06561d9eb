"""
Chooses the completion backend from static settings.

The choice is made once at startup. There is no retry against the other
backend: a failing provider only ever degrades to the deterministic digest.
"""

import logging

from completion.azure_openai import AzureOpenAIProvider
from completion.base import CompletionProvider, GenerationConfig
from completion.lm_studio import LMStudioProvider
from config import Settings

logger = logging.getLogger(__name__)

AZURE = "azure"
LM_STUDIO = "lmstudio"


def create_provider(
    provider_type: str,
    settings: Settings,
    config: GenerationConfig | None = None,
) -> CompletionProvider:
    """
    Create a completion provider by name.

    Raises:
        ValueError: if the provider type is unknown
        RuntimeError: if a required Azure setting is missing
    """
    provider_type = provider_type.lower()

    if provider_type in (LM_STUDIO, "lm-studio", "local"):
        return LMStudioProvider(
            base_url=settings.lm_studio_base_url,
            model=settings.lm_studio_model,
            config=config,
        )

    if provider_type in (AZURE, "azure-openai", "aoai"):
        missing = [
            env
            for env, value in (
                ("AZURE_OPENAI_ENDPOINT", settings.azure_openai_endpoint),
                ("AZURE_OPENAI_API_KEY", settings.azure_openai_api_key),
                ("AZURE_OPENAI_DEPLOYMENT_NAME", settings.azure_openai_deployment),
            )
            if not value
        ]
        if missing:
            raise RuntimeError(
                f"Azure OpenAI settings missing: {', '.join(missing)}"
            )
        return AzureOpenAIProvider(
            endpoint=settings.azure_openai_endpoint,
            api_key=settings.azure_openai_api_key,
            deployment=settings.azure_openai_deployment,
            api_version=settings.azure_openai_api_version,
            config=config,
        )

    raise ValueError(
        f"Unknown provider type: {provider_type} (available: {AZURE}, {LM_STUDIO})"
    )


class ProviderSelector:
    """Resolves the configured provider once and hands out the same instance."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._provider: CompletionProvider | None = None

    @property
    def provider_type(self) -> str:
        return LM_STUDIO if self.settings.use_lm_studio else AZURE

    def select(self) -> CompletionProvider:
        if self._provider is None:
            self._provider = create_provider(self.provider_type, self.settings)
            logger.info(f"Using completion provider: {self._provider.name}")
        return self._provider
