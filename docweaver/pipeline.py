"""Pipeline facade: one object wiring extraction, generation and merging."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable

from docweaver.batch import BatchCoordinator, BatchResult, DeclarationOutcome, DeclarationRequest
from docweaver.config.models import DocweaverConfig
from docweaver.errors import InvalidRange
from docweaver.extractor import (
    DeclarationContext,
    DeclarationExtractor,
    DeclarationNode,
    JavaSyntaxView,
    SourceRange,
    SyntaxView,
    collect_declarations,
)
from docweaver.generation import DocCache, GenerationClient
from docweaver.llm import LLMProvider, create_llm_provider
from docweaver.merge import apply_merge_results

logger = logging.getLogger(__name__)


def line_of(text: str, offset: int) -> int:
    """1-based line number of ``offset``."""
    return text.count("\n", 0, offset) + 1


class DocPipeline:
    """Documents declarations of Java-family sources with one configuration.

    The cache lives as long as the pipeline and is cleared whenever the
    configuration changes.
    """

    def __init__(
        self,
        config: DocweaverConfig,
        provider: LLMProvider | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.cache = DocCache(config.batch.cache_size)
        self.provider = provider or create_llm_provider(config.llm)
        self._sleep = sleep
        self._rng = rng
        self._build()

    def _build(self) -> None:
        self.client = GenerationClient(
            self.provider, self.config.llm, self.cache, sleep=self._sleep, rng=self._rng
        )
        self.coordinator = BatchCoordinator(self.client, self.config.batch.max_concurrency)

    def reconfigure(self, config: DocweaverConfig, provider: LLMProvider | None = None) -> None:
        if provider is not None:
            self.provider = provider
        elif config.llm != self.config.llm:
            self.provider = create_llm_provider(config.llm)
        self.config = config
        self.cache.clear()
        self.cache.max_size = config.batch.cache_size
        self._build()
        logger.debug("Pipeline reconfigured; cache cleared")

    # ------------------------------------------------------------------
    # Declaration lookup
    # ------------------------------------------------------------------

    def declarations(
        self, source_text: str, syntax_view: SyntaxView | None = None
    ) -> list[DeclarationNode]:
        view = syntax_view or JavaSyntaxView(source_text)
        return collect_declarations(source_text, view, self.config.generation)

    def extract(
        self,
        source_text: str,
        declaration_range: SourceRange,
        syntax_view: SyntaxView | None = None,
    ) -> DeclarationContext:
        view = syntax_view or JavaSyntaxView(source_text)
        extractor = DeclarationExtractor(self.config.generation.max_context_lines)
        return extractor.extract(source_text, declaration_range, view)

    def declaration_at_line(
        self, source_text: str, line: int, syntax_view: SyntaxView | None = None
    ) -> DeclarationNode:
        """Innermost documentable declaration whose header spans ``line``."""
        matches = [
            node
            for node in self.declarations(source_text, syntax_view)
            if line_of(source_text, node.range.start) <= line <= line_of(source_text, node.header_end)
        ]
        if not matches:
            raise InvalidRange(f"no documentable declaration on line {line}")
        return max(matches, key=lambda node: node.range.start)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def document(
        self,
        source_text: str,
        declaration_range: SourceRange,
        syntax_view: SyntaxView | None = None,
    ) -> DeclarationOutcome:
        """Document a single declaration; the outcome carries the merge result."""
        view = syntax_view or JavaSyntaxView(source_text)
        request = DeclarationRequest(source_text=source_text, range=declaration_range, syntax_view=view)
        result = await self.coordinator.run([request], self.config.generation)
        return result.outcomes[0]

    async def document_source(
        self,
        source_text: str,
        nodes: list[DeclarationNode] | None = None,
        syntax_view: SyntaxView | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> tuple[BatchResult, str]:
        """Document ``nodes`` (default: every documentable declaration).

        Returns the batch result and the source with all applied merges.
        """
        view = syntax_view or JavaSyntaxView(source_text)
        if nodes is None:
            nodes = collect_declarations(source_text, view, self.config.generation)
        requests = [
            DeclarationRequest(
                source_text=source_text,
                range=node.range,
                syntax_view=view,
                label=_label(node, source_text),
            )
            for node in nodes
        ]
        result = await self.coordinator.run(requests, self.config.generation, cancel_event)
        return result, apply_merge_results(source_text, result.merge_results)

    async def check_connection(self) -> str:
        return await self.client.check_connection()


def _label(node: DeclarationNode, source_text: str) -> str:
    owner = f"{node.enclosing_type}." if node.enclosing_type else ""
    return f"{owner}{node.name} (line {line_of(source_text, node.range.start)})"
