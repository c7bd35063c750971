"""Ollama adapter for docweaver."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

import httpx

from docweaver.llm.base import LLMProvider
from docweaver.llm.models import LLMConfig, LLMError, LLMResponse, TokenUsage

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "http://localhost:11434"


def _validate_base_url(url: str) -> str:
    """Validate Ollama base_url for SSRF and injection risks.

    Raises ValueError if the URL is malformed or contains injection patterns.
    Warns if the URL is not localhost (remote Ollama is valid but uncommon).
    """
    parsed = urlparse(url)

    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Ollama base_url must be http(s), got {parsed.scheme}")

    if "\r" in url or "\n" in url:
        raise ValueError("CRLF injection detected in base_url")

    allowed_hosts = {"localhost", "127.0.0.1", "::1", "0.0.0.0"}
    if parsed.hostname not in allowed_hosts:
        logger.warning(
            "Ollama base_url %s is not localhost, ensure this is intentional",
            parsed.hostname,
        )

    return url


class OllamaProvider(LLMProvider):
    """Ollama adapter using its REST API via httpx."""

    name = "ollama"

    def __init__(self, config: LLMConfig) -> None:
        super().__init__(config)
        raw_url = (config.base_url or _DEFAULT_BASE_URL).rstrip("/")
        self._base_url = _validate_base_url(raw_url)

    async def generate(
        self,
        system: str,
        user: str,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "stream": False,
            "options": {
                "temperature": self.config.temperature,
                "num_predict": max_tokens or self.config.max_tokens,
            },
        }
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    f"{self._base_url}/api/chat",
                    json=payload,
                    timeout=self.config.timeout,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException as e:
            raise LLMError("ollama", "generate", e, retryable=True, timed_out=True) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise LLMError(
                "ollama",
                "generate",
                e,
                retryable=status == 429 or status >= 500,
                status_code=status,
            ) from e
        except httpx.TransportError as e:
            raise LLMError("ollama", "generate", e, retryable=True) from e

        content = data.get("message", {}).get("content", "")
        if not content:
            raise ValueError("No content in Ollama response")
        return LLMResponse(
            content=content,
            usage=TokenUsage(
                input_tokens=data.get("prompt_eval_count", 0),
                output_tokens=data.get("eval_count", 0),
            ),
            model=self.config.model,
        )
