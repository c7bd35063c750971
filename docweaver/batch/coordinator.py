"""Batch coordinator: documents many declarations with bounded concurrency."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence

from docweaver.batch.models import BatchResult, DeclarationOutcome, DeclarationRequest
from docweaver.config.models import GenerationConfig
from docweaver.errors import Cancelled, DocweaverError
from docweaver.extractor.extractor import DeclarationExtractor
from docweaver.extractor.models import DeclarationKind
from docweaver.generation.client import GenerationClient
from docweaver.merge.engine import MergeEngine, MergeResult
from docweaver.prompting.builder import PromptBuilder

logger = logging.getLogger(__name__)


def kind_enabled(kind: DeclarationKind, config: GenerationConfig) -> bool:
    if kind.is_type:
        return config.generate_for_class
    if kind.is_callable:
        return config.generate_for_method
    if kind == DeclarationKind.field:
        return config.generate_for_field
    return False


class BatchCoordinator:
    """Runs extract -> build -> generate -> merge for each declaration.

    Every declaration is isolated: an error is recorded against it and the
    rest of the batch carries on. Merge results are computed against each
    request's own source text; applying them is the caller's job.
    """

    def __init__(
        self,
        client: GenerationClient,
        max_concurrency: int = 4,
        builder: PromptBuilder | None = None,
        merger: MergeEngine | None = None,
    ) -> None:
        self.client = client
        self.max_concurrency = max_concurrency
        self.builder = builder or PromptBuilder()
        self.merger = merger or MergeEngine()

    async def run(
        self,
        declarations: Sequence[DeclarationRequest],
        config: GenerationConfig,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchResult:
        started = time.monotonic()
        extractor = DeclarationExtractor(config.max_context_lines)
        semaphore = asyncio.Semaphore(self.max_concurrency)
        tasks = [
            asyncio.create_task(
                self._run_one(index, request, config, extractor, semaphore, cancel_event)
            )
            for index, request in enumerate(declarations)
        ]

        watcher = None
        if cancel_event is not None and tasks:
            watcher = asyncio.create_task(self._watch_cancel(cancel_event, tasks))
        try:
            results = await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            if watcher is not None:
                watcher.cancel()

        outcomes: list[DeclarationOutcome] = []
        for index, (request, result) in enumerate(zip(declarations, results)):
            if isinstance(result, DeclarationOutcome):
                outcomes.append(result)
            elif isinstance(result, asyncio.CancelledError):
                outcomes.append(_cancelled(index, request.label or f"#{index}"))
            else:
                raise result

        batch = BatchResult(outcomes=outcomes, duration_seconds=time.monotonic() - started)
        logger.info(
            "Batch finished: %d applied, %d skipped, %d failed, %d cancelled of %d in %.2fs",
            batch.applied,
            batch.skipped,
            batch.failed,
            batch.cancelled,
            batch.total,
            batch.duration_seconds,
        )
        return batch

    async def _watch_cancel(self, cancel_event: asyncio.Event, tasks: list[asyncio.Task]) -> None:
        await cancel_event.wait()
        logger.info("Batch cancellation requested")
        # Fetches shared with another batch keep running for it.
        for task in tasks:
            task.cancel()

    async def _run_one(
        self,
        index: int,
        request: DeclarationRequest,
        config: GenerationConfig,
        extractor: DeclarationExtractor,
        semaphore: asyncio.Semaphore,
        cancel_event: asyncio.Event | None,
    ) -> DeclarationOutcome:
        label = request.label or f"#{index}"
        if cancel_event is not None and cancel_event.is_set():
            return _cancelled(index, label)
        try:
            context = extractor.extract(request.source_text, request.range, request.syntax_view)
            label = request.label or f"{context.kind.value} {context.name}"

            if context.existing_comment is not None and not config.overwrite_existing:
                return _skipped(index, label, "declaration already has a documentation comment")
            if not kind_enabled(context.kind, config):
                return _skipped(index, label, f"generation disabled for {context.kind.value}")

            generation_request = self.builder.build(context, config)
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    return _cancelled(index, label)
                doc = await self.client.generate(generation_request)

            merge = self.merger.merge(
                request.source_text,
                context.source_range,
                context.existing_comment,
                doc,
                config,
                context.kind,
            )
        except Cancelled as e:
            return _cancelled(index, label, e.message)
        except DocweaverError as e:
            logger.info("Declaration %s failed (%s): %s", label, e.kind, e.message)
            return DeclarationOutcome(
                index=index, label=label, status="failed", error_kind=e.kind, message=e.message
            )
        except Exception as e:
            logger.exception("Unexpected error documenting %s", label)
            return DeclarationOutcome(
                index=index, label=label, status="failed", error_kind="internal", message=str(e)
            )

        return DeclarationOutcome(
            index=index,
            label=label,
            status=merge.status,
            merge=merge,
            error_kind=merge.error_kind,
            message=merge.reason,
        )


def _skipped(index: int, label: str, reason: str) -> DeclarationOutcome:
    return DeclarationOutcome(
        index=index,
        label=label,
        status="skipped",
        merge=MergeResult.skipped(reason),
        message=reason,
    )


def _cancelled(index: int, label: str, message: str = "cancelled") -> DeclarationOutcome:
    return DeclarationOutcome(
        index=index, label=label, status="cancelled", error_kind="cancelled", message=message
    )
