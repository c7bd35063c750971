"""Shared test fixtures for docweaver."""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from docweaver.config.models import DocweaverConfig, GenerationConfig, LLMSettings
from docweaver.llm.base import LLMProvider
from docweaver.llm.models import LLMConfig as LLMRuntimeConfig, LLMResponse, TokenUsage

CALCULATOR_SOURCE = """\
package com.example;

import java.util.List;

/**
 * Calculator.
 */
public class Calculator {
    private int total = 0;

    public int add(int a, int b) {
        return a + b;
    }
}
"""

ADD_RESPONSE = {
    "summary": "Adds two integers.",
    "params": [
        {"name": "a", "description": "first addend"},
        {"name": "b", "description": "second addend"},
    ],
    "returns": "the sum of a and b",
    "throws": [],
}


def make_response(content: str | dict, model: str = "test-model") -> LLMResponse:
    if isinstance(content, dict):
        content = json.dumps(content)
    return LLMResponse(
        content=content,
        usage=TokenUsage(input_tokens=100, output_tokens=50),
        model=model,
    )


@pytest.fixture
def calculator_source():
    return CALCULATOR_SOURCE


@pytest.fixture
def add_response():
    return make_response(ADD_RESPONSE)


@pytest.fixture
def mock_llm_provider(add_response):
    provider = MagicMock(spec=LLMProvider)
    provider.name = "mock"
    provider.config = LLMRuntimeConfig(provider="openai", model="test-model")
    provider.generate = AsyncMock(return_value=add_response)
    return provider


@pytest.fixture
def no_sleep():
    return AsyncMock(return_value=None)


@pytest.fixture
def fast_llm_settings():
    return LLMSettings(timeout=5.0, max_attempts=3, retry_delay=0.0, max_retry_delay=0.0)


@pytest.fixture
def generation_config():
    return GenerationConfig(include_tags=frozenset({"param", "return"}))


@pytest.fixture
def sample_config():
    return DocweaverConfig()
