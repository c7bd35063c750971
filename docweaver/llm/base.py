"""Abstract LLM interface for docweaver."""

from __future__ import annotations

from abc import ABC, abstractmethod

from docweaver.llm.models import LLMConfig, LLMResponse


class LLMProvider(ABC):
    """Provider-agnostic interface for one-shot documentation generation.

    Adapters perform exactly one remote call per ``generate`` and never retry
    on their own; retry, timeout and caching policy belong to the
    generation client. Failures must surface as ``LLMError`` so the client
    can tell transient errors from rejections.
    """

    name = "llm"

    def __init__(self, config: LLMConfig) -> None:
        self.config = config

    @abstractmethod
    async def generate(
        self,
        system: str,
        user: str,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a complete response (one-shot)."""
        ...
