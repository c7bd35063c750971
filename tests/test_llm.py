"""Tests for the LLM subsystem: provider factory, adapters and error mapping."""

import os
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import openai

from docweaver.config.models import LLMSettings
from docweaver.llm import create_llm_provider, LLMConfig, LLMError, LLMResponse, TokenUsage
from docweaver.llm.claude import ClaudeProvider
from docweaver.llm.ollama import OllamaProvider
from docweaver.llm.openai_adapter import OpenAIProvider

_REQUEST = httpx.Request("POST", "https://api.example.test/v1")


def _status_response(status: int) -> httpx.Response:
    return httpx.Response(status, request=_REQUEST)


# ---------------------------------------------------------------------------
# Model smoke tests
# ---------------------------------------------------------------------------


class TestLLMModels:
    def test_llm_response(self):
        resp = LLMResponse(
            content="hello",
            usage=TokenUsage(input_tokens=10, output_tokens=20),
            model="test-model",
        )
        assert resp.content == "hello"
        assert resp.usage.output_tokens == 20

    def test_llm_config_defaults(self):
        cfg = LLMConfig(provider="anthropic", model="claude-3")
        assert cfg.max_tokens == 1000
        assert cfg.temperature == 0.1
        assert cfg.api_key is None
        assert cfg.timeout == 30.0

    def test_llm_error_message_and_cause(self):
        cause = RuntimeError("reset")
        err = LLMError("openai", "generate", cause, retryable=True, status_code=502)
        assert str(err) == "openai generate failed: reset"
        assert err.__cause__ is cause
        assert err.retryable and err.status_code == 502 and not err.timed_out


# ---------------------------------------------------------------------------
# create_llm_provider
# ---------------------------------------------------------------------------


class TestCreateLLMProvider:
    @patch.dict(os.environ, {"ANTHROPIC_API_KEY": "test-key-123"})
    def test_creates_claude_provider(self):
        config = LLMSettings(
            provider="anthropic",
            model="claude-3-5-haiku-latest",
            api_key_env="ANTHROPIC_API_KEY",
        )
        provider = create_llm_provider(config)
        assert isinstance(provider, ClaudeProvider)

    @patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"})
    def test_creates_openai_provider(self):
        provider = create_llm_provider(LLMSettings(provider="openai", model="gpt-4o"))
        assert isinstance(provider, OpenAIProvider)

    @patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"})
    def test_openai_compatible_base_url(self):
        provider = create_llm_provider(
            LLMSettings(provider="openai", model="qwen-plus", base_url="https://compat.example/v1")
        )
        assert provider.config.base_url == "https://compat.example/v1"

    @patch.dict(os.environ, {}, clear=True)
    def test_creates_ollama_provider_without_key(self):
        provider = create_llm_provider(LLMSettings(provider="ollama", model="llama3"))
        assert isinstance(provider, OllamaProvider)
        assert provider.config.api_key is None

    def test_ollama_provider_custom_base_url(self):
        provider = create_llm_provider(
            LLMSettings(provider="ollama", model="llama3", base_url="http://myhost:11434/")
        )
        assert provider._base_url == "http://myhost:11434"

    def test_ollama_rejects_non_http_url(self):
        with pytest.raises(ValueError, match="http"):
            create_llm_provider(
                LLMSettings(provider="ollama", model="llama3", base_url="file:///etc/passwd")
            )

    def test_unsupported_provider_raises(self):
        config = LLMSettings(provider="anthropic", model="test", api_key_env="SOME_KEY")
        object.__setattr__(config, "provider", "unsupported_llm")
        with pytest.raises(ValueError, match="Unsupported LLM provider"):
            create_llm_provider(config)

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_api_key_raises(self):
        config = LLMSettings(provider="anthropic", model="test", api_key_env="NONEXISTENT_KEY_VAR")
        with pytest.raises(ValueError, match="Missing API key"):
            create_llm_provider(config)

    @patch.dict(os.environ, {"MY_KEY": "abc"})
    def test_settings_bridged_to_provider_config(self):
        config = LLMSettings(
            provider="anthropic",
            model="claude-3-5-haiku-latest",
            api_key_env="MY_KEY",
            max_tokens=2048,
            timeout=12.5,
        )
        provider = create_llm_provider(config)
        assert provider.config.api_key == "abc"
        assert provider.config.model == "claude-3-5-haiku-latest"
        assert provider.config.max_tokens == 2048
        assert provider.config.timeout == 12.5


# ---------------------------------------------------------------------------
# OpenAIProvider.generate(): mocked SDK client
# ---------------------------------------------------------------------------


@pytest.fixture
def openai_provider():
    return OpenAIProvider(LLMConfig(provider="openai", model="gpt-4o-mini", api_key="sk-test"))


class TestOpenAIProviderGenerate:
    @pytest.mark.asyncio
    async def test_generate_returns_response(self, openai_provider):
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.content = '{"summary": "Adds."}'
        response.usage.prompt_tokens = 12
        response.usage.completion_tokens = 7
        response.model = "gpt-4o-mini-2024-07-18"
        create = AsyncMock(return_value=response)

        with patch.object(openai_provider._client.chat.completions, "create", create):
            result = await openai_provider.generate("sys", "usr", 64)

        assert result.content == '{"summary": "Adds."}'
        assert result.usage.input_tokens == 12
        assert result.model == "gpt-4o-mini-2024-07-18"
        kwargs = create.call_args.kwargs
        assert kwargs["max_tokens"] == 64
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}

    @pytest.mark.asyncio
    async def test_no_choices_raises_value_error(self, openai_provider):
        response = MagicMock()
        response.choices = []
        with patch.object(
            openai_provider._client.chat.completions, "create", AsyncMock(return_value=response)
        ):
            with pytest.raises(ValueError, match="No choices"):
                await openai_provider.generate("sys", "usr")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, retryable, status, timed_out",
        [
            (openai.APITimeoutError(request=_REQUEST), True, None, True),
            (openai.APIConnectionError(request=_REQUEST), True, None, False),
            (
                openai.APIStatusError("overloaded", response=_status_response(503), body=None),
                True,
                503,
                False,
            ),
            (
                openai.APIStatusError("slow down", response=_status_response(429), body=None),
                True,
                429,
                False,
            ),
            (
                openai.APIStatusError("bad key", response=_status_response(401), body=None),
                False,
                401,
                False,
            ),
        ],
    )
    async def test_sdk_errors_wrapped(self, openai_provider, error, retryable, status, timed_out):
        with patch.object(
            openai_provider._client.chat.completions, "create", AsyncMock(side_effect=error)
        ):
            with pytest.raises(LLMError) as exc_info:
                await openai_provider.generate("sys", "usr")

        err = exc_info.value
        assert err.provider == "openai"
        assert err.retryable is retryable
        assert err.status_code == status
        assert err.timed_out is timed_out


# ---------------------------------------------------------------------------
# ClaudeProvider.generate(): mocked SDK client
# ---------------------------------------------------------------------------


@pytest.fixture
def claude_provider():
    return ClaudeProvider(
        LLMConfig(provider="anthropic", model="claude-3-5-haiku-latest", api_key="sk-ant")
    )


class TestClaudeProviderGenerate:
    @pytest.mark.asyncio
    async def test_generate_sends_system_separately(self, claude_provider):
        message = MagicMock()
        message.content = [MagicMock(text='{"summary": "Adds."}')]
        message.usage.input_tokens = 30
        message.usage.output_tokens = 9
        message.model = "claude-3-5-haiku-latest"
        create = AsyncMock(return_value=message)

        with patch.object(claude_provider._client.messages, "create", create):
            result = await claude_provider.generate("sys", "usr")

        assert result.content == '{"summary": "Adds."}'
        assert result.usage.input_tokens == 30
        kwargs = create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["messages"] == [{"role": "user", "content": "usr"}]
        assert kwargs["max_tokens"] == 1000

    @pytest.mark.asyncio
    async def test_empty_content_raises_value_error(self, claude_provider):
        message = MagicMock()
        message.content = []
        with patch.object(
            claude_provider._client.messages, "create", AsyncMock(return_value=message)
        ):
            with pytest.raises(ValueError, match="No text content"):
                await claude_provider.generate("sys", "usr")

    @pytest.mark.asyncio
    async def test_status_error_wrapped(self, claude_provider):
        error = anthropic.APIStatusError("forbidden", response=_status_response(403), body=None)
        with patch.object(claude_provider._client.messages, "create", AsyncMock(side_effect=error)):
            with pytest.raises(LLMError) as exc_info:
                await claude_provider.generate("sys", "usr")
        assert exc_info.value.status_code == 403
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_timeout_wrapped(self, claude_provider):
        error = anthropic.APITimeoutError(request=_REQUEST)
        with patch.object(claude_provider._client.messages, "create", AsyncMock(side_effect=error)):
            with pytest.raises(LLMError) as exc_info:
                await claude_provider.generate("sys", "usr")
        assert exc_info.value.timed_out is True


# ---------------------------------------------------------------------------
# OllamaProvider.generate(): mocked httpx
# ---------------------------------------------------------------------------


def _mock_http_client(response=None, post_error=None):
    mock_client = AsyncMock()
    if post_error is not None:
        mock_client.post.side_effect = post_error
    else:
        mock_client.post.return_value = response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


class TestOllamaProviderGenerate:
    @pytest.mark.asyncio
    async def test_generate_returns_response(self):
        provider = OllamaProvider(LLMConfig(provider="ollama", model="llama3"))

        mock_response = MagicMock()
        mock_response.json.return_value = {
            "message": {"content": "Hello from Ollama"},
            "prompt_eval_count": 10,
            "eval_count": 25,
        }
        mock_response.raise_for_status = MagicMock()
        mock_client = _mock_http_client(mock_response)

        with patch("docweaver.llm.ollama.httpx.AsyncClient", return_value=mock_client):
            result = await provider.generate("system prompt", "user message", 32)

        assert isinstance(result, LLMResponse)
        assert result.content == "Hello from Ollama"
        assert result.usage.input_tokens == 10
        assert result.usage.output_tokens == 25
        assert result.model == "llama3"
        payload = mock_client.post.call_args.kwargs["json"]
        assert payload["stream"] is False
        assert payload["options"]["num_predict"] == 32

    @pytest.mark.asyncio
    async def test_generate_raises_on_empty_content(self):
        provider = OllamaProvider(LLMConfig(provider="ollama", model="llama3"))

        mock_response = MagicMock()
        mock_response.json.return_value = {"message": {"content": ""}}
        mock_response.raise_for_status = MagicMock()

        with patch(
            "docweaver.llm.ollama.httpx.AsyncClient",
            return_value=_mock_http_client(mock_response),
        ):
            with pytest.raises(ValueError, match="No content in Ollama response"):
                await provider.generate("sys", "usr")

    @pytest.mark.asyncio
    async def test_http_status_error_wrapped(self):
        provider = OllamaProvider(LLMConfig(provider="ollama", model="llama3"))

        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "server error", request=_REQUEST, response=_status_response(500)
        )

        with patch(
            "docweaver.llm.ollama.httpx.AsyncClient",
            return_value=_mock_http_client(mock_response),
        ):
            with pytest.raises(LLMError) as exc_info:
                await provider.generate("sys", "usr")

        assert exc_info.value.status_code == 500
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_timeout_wrapped(self):
        provider = OllamaProvider(LLMConfig(provider="ollama", model="llama3"))
        mock_client = _mock_http_client(post_error=httpx.ReadTimeout("timed out"))

        with patch("docweaver.llm.ollama.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(LLMError) as exc_info:
                await provider.generate("sys", "usr")

        assert exc_info.value.timed_out is True

    @pytest.mark.asyncio
    async def test_connection_error_is_retryable(self):
        provider = OllamaProvider(LLMConfig(provider="ollama", model="llama3"))
        mock_client = _mock_http_client(post_error=httpx.ConnectError("refused"))

        with patch("docweaver.llm.ollama.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(LLMError) as exc_info:
                await provider.generate("sys", "usr")

        assert exc_info.value.retryable is True
        assert exc_info.value.status_code is None
