"""Pydantic models for the LLM subsystem."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class LLMError(Exception):
    """Wraps provider-specific exceptions with context.

    ``status_code`` is the HTTP status when the remote service answered;
    ``None`` means the request never got a response (connection or timeout).
    """

    def __init__(
        self,
        provider: str,
        operation: str,
        cause: Exception,
        retryable: bool = False,
        status_code: int | None = None,
        timed_out: bool = False,
    ) -> None:
        self.provider = provider
        self.operation = operation
        self.retryable = retryable
        self.status_code = status_code
        self.timed_out = timed_out
        super().__init__(f"{provider} {operation} failed: {cause}")
        self.__cause__ = cause


class LLMConfig(BaseModel):
    """Configuration for an LLM provider."""

    provider: Literal["openai", "anthropic", "ollama"]
    model: str
    max_tokens: int = 1000
    temperature: float = 0.1
    api_key: str | None = None
    base_url: str | None = None
    timeout: float = 30.0


class TokenUsage(BaseModel):
    """Token usage stats from a single LLM call."""

    input_tokens: int
    output_tokens: int


class LLMResponse(BaseModel):
    """Structured response from an LLM provider."""

    content: str
    usage: TokenUsage
    model: str
