"""Language-model backends that turn a prompt into digest text."""

from __future__ import annotations

__all__: list[str] = [
    "azure_openai",
    "base",
    "factory",
    "lm_studio",
]
