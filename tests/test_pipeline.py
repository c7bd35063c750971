"""Integration test: source text through extraction, generation and merge."""

import asyncio

import pytest
from unittest.mock import AsyncMock, patch

from conftest import CALCULATOR_SOURCE

from docweaver.config.models import BatchConfig, DocweaverConfig, GenerationConfig, LLMSettings
from docweaver.errors import InvalidRange
from docweaver.extractor import DeclarationKind, SourceRange
from docweaver.pipeline import DocPipeline, line_of

ADD_COMMENT = (
    "    /**\n"
    "     * Adds two integers.\n"
    "     *\n"
    "     * @param a first addend\n"
    "     * @param b second addend\n"
    "     * @return the sum of a and b\n"
    "     */\n"
)


@pytest.fixture
def pipeline_config(fast_llm_settings):
    return DocweaverConfig(llm=fast_llm_settings)


@pytest.fixture
def pipeline(pipeline_config, mock_llm_provider, no_sleep):
    return DocPipeline(pipeline_config, mock_llm_provider, sleep=no_sleep)


def _add_range(source: str) -> SourceRange:
    start = source.index("public int add")
    return SourceRange(start=start, end=source.index("    }", start) + len("    }"))


class TestLineOf:
    def test_line_numbers(self):
        text = "a\nb\nc"
        assert line_of(text, 0) == 1
        assert line_of(text, 2) == 2
        assert line_of(text, len(text)) == 3


class TestDeclarationLookup:
    def test_declarations_respect_kind_toggles(self, pipeline):
        names = [node.name for node in pipeline.declarations(CALCULATOR_SOURCE)]
        assert names == ["Calculator", "add"]

    def test_fields_listed_when_enabled(self, pipeline, pipeline_config):
        pipeline.reconfigure(
            pipeline_config.model_copy(
                update={"generation": GenerationConfig(generate_for_field=True)}
            )
        )
        names = [node.name for node in pipeline.declarations(CALCULATOR_SOURCE)]
        assert "total" in names

    def test_declaration_at_line(self, pipeline):
        node = pipeline.declaration_at_line(CALCULATOR_SOURCE, 11)
        assert node.name == "add"
        assert node.kind == DeclarationKind.method
        assert node.enclosing_type == "Calculator"

    def test_declaration_at_class_line(self, pipeline):
        assert pipeline.declaration_at_line(CALCULATOR_SOURCE, 8).name == "Calculator"

    def test_no_declaration_on_line(self, pipeline):
        with pytest.raises(InvalidRange):
            pipeline.declaration_at_line(CALCULATOR_SOURCE, 12)

    def test_extract(self, pipeline):
        context = pipeline.extract(CALCULATOR_SOURCE, _add_range(CALCULATOR_SOURCE))
        assert context.signature == "public int add(int a, int b)"
        assert context.parameter_names == ("a", "b")


class TestDocument:
    @pytest.mark.asyncio
    async def test_document_single_declaration(self, pipeline):
        outcome = await pipeline.document(CALCULATOR_SOURCE, _add_range(CALCULATOR_SOURCE))

        assert outcome.status == "applied"
        assert ADD_COMMENT + "    public int add" in outcome.merge.text

    @pytest.mark.asyncio
    async def test_document_source(self, pipeline, mock_llm_provider):
        result, text = await pipeline.document_source(CALCULATOR_SOURCE)

        assert [o.status for o in result.outcomes] == ["skipped", "applied"]
        assert result.outcomes[1].label == "Calculator.add (line 11)"
        line_start = CALCULATOR_SOURCE.index("    public int add")
        assert text == (
            CALCULATOR_SOURCE[:line_start] + ADD_COMMENT + CALCULATOR_SOURCE[line_start:]
        )
        assert mock_llm_provider.generate.await_count == 1

    @pytest.mark.asyncio
    async def test_second_run_served_from_cache(self, pipeline, mock_llm_provider):
        await pipeline.document(CALCULATOR_SOURCE, _add_range(CALCULATOR_SOURCE))
        await pipeline.document(CALCULATOR_SOURCE, _add_range(CALCULATOR_SOURCE))

        assert mock_llm_provider.generate.await_count == 1
        assert len(pipeline.cache) == 1

    @pytest.mark.asyncio
    async def test_cancel_event_stops_batch(self, pipeline, mock_llm_provider):
        async def hang(*args, **kwargs):
            await asyncio.sleep(5)

        mock_llm_provider.generate = AsyncMock(side_effect=hang)
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, cancel.set)

        result, text = await pipeline.document_source(CALCULATOR_SOURCE, cancel_event=cancel)

        assert result.cancelled == 1
        assert text == CALCULATOR_SOURCE


class TestReconfigure:
    @pytest.mark.asyncio
    async def test_reconfigure_clears_cache(self, pipeline, pipeline_config, mock_llm_provider):
        await pipeline.document(CALCULATOR_SOURCE, _add_range(CALCULATOR_SOURCE))
        assert len(pipeline.cache) == 1

        pipeline.reconfigure(
            pipeline_config.model_copy(update={"batch": BatchConfig(max_concurrency=2)})
        )

        assert len(pipeline.cache) == 0
        assert pipeline.coordinator.max_concurrency == 2
        assert pipeline.provider is mock_llm_provider
        await pipeline.document(CALCULATOR_SOURCE, _add_range(CALCULATOR_SOURCE))
        assert mock_llm_provider.generate.await_count == 2

    def test_new_llm_settings_build_new_provider(self, pipeline, pipeline_config, mock_llm_provider):
        replacement = object()
        new_llm = LLMSettings(provider="ollama", model="llama3")
        with patch("docweaver.pipeline.create_llm_provider", return_value=replacement) as factory:
            pipeline.reconfigure(pipeline_config.model_copy(update={"llm": new_llm}))

        factory.assert_called_once_with(new_llm)
        assert pipeline.provider is replacement
        assert pipeline.client.provider is replacement
