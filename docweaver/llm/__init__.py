"""LLM provider abstraction layer."""

import os

from docweaver.config.models import LLMSettings
from docweaver.llm.base import LLMProvider
from docweaver.llm.claude import ClaudeProvider
from docweaver.llm.models import LLMConfig, LLMError, LLMResponse, TokenUsage
from docweaver.llm.ollama import OllamaProvider
from docweaver.llm.openai_adapter import OpenAIProvider

_PROVIDER_MAP: dict[str, type[LLMProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": ClaudeProvider,
    "ollama": OllamaProvider,
}


def create_llm_provider(settings: LLMSettings) -> LLMProvider:
    """Create an LLM provider from app-level settings.

    Resolves the API key from the env var in settings.api_key_env, then
    bridges the app-level settings to the provider-level LLMConfig.
    """
    cls = _PROVIDER_MAP.get(settings.provider)
    if cls is None:
        raise ValueError(
            f"Unsupported LLM provider: {settings.provider!r}. "
            f"Supported: {', '.join(_PROVIDER_MAP)}"
        )

    api_key = None
    # Ollama doesn't require an API key
    if settings.provider != "ollama":
        api_key = os.environ.get(settings.api_key_env)
        if not api_key:
            raise ValueError(
                f"Missing API key: set environment variable {settings.api_key_env!r}"
            )

    llm_config = LLMConfig(
        provider=settings.provider,
        model=settings.model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        api_key=api_key,
        base_url=settings.base_url,
        timeout=settings.timeout,
    )
    return cls(llm_config)


__all__ = [
    "ClaudeProvider",
    "LLMConfig",
    "LLMError",
    "LLMProvider",
    "LLMResponse",
    "OllamaProvider",
    "OpenAIProvider",
    "TokenUsage",
    "create_llm_provider",
]
