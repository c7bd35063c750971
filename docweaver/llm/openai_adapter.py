"""OpenAI (and OpenAI-compatible) adapter for docweaver."""

from __future__ import annotations

from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
)

from docweaver.llm.base import LLMProvider
from docweaver.llm.models import LLMConfig, LLMError, LLMResponse, TokenUsage


class OpenAIProvider(LLMProvider):
    """OpenAI adapter using the async SDK.

    ``base_url`` points the SDK at any OpenAI-compatible endpoint
    (DashScope, SiliconFlow, LM Studio, ...).
    """

    name = "openai"

    def __init__(self, config: LLMConfig) -> None:
        super().__init__(config)
        self._client = AsyncOpenAI(
            api_key=config.api_key,  # falls back to OPENAI_API_KEY env var
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=0,
        )

    async def generate(
        self,
        system: str,
        user: str,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        try:
            response = await self._client.chat.completions.create(
                model=self.config.model,
                max_tokens=max_tokens or self.config.max_tokens,
                temperature=self.config.temperature,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
            )
        except APITimeoutError as e:
            raise LLMError("openai", "generate", e, retryable=True, timed_out=True) from e
        except APIConnectionError as e:
            raise LLMError("openai", "generate", e, retryable=True) from e
        except APIStatusError as e:
            raise LLMError(
                "openai",
                "generate",
                e,
                retryable=e.status_code == 429 or e.status_code >= 500,
                status_code=e.status_code,
            ) from e
        except APIError as e:
            raise LLMError("openai", "generate", e) from e

        if not response.choices:
            raise ValueError("No choices in OpenAI response")
        choice = response.choices[0]
        usage = response.usage
        return LLMResponse(
            content=choice.message.content or "",
            usage=TokenUsage(
                input_tokens=usage.prompt_tokens if usage else 0,
                output_tokens=usage.completion_tokens if usage else 0,
            ),
            model=response.model,
        )
