"""Merge engine: place a rendered comment block above a declaration."""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, ConfigDict

from docweaver.config.models import GenerationConfig
from docweaver.errors import RangeConflict
from docweaver.extractor.models import DeclarationKind, SourceRange
from docweaver.extractor.syntax import mask_source
from docweaver.generation.models import GeneratedDoc
from docweaver.merge.renderer import render_comment

logger = logging.getLogger(__name__)

MergeStatus = Literal["applied", "skipped", "failed"]


class MergeResult(BaseModel):
    """Outcome of one merge, always computed against the text passed in.

    An applied result is a single edit: ``replacement`` goes in place of
    ``replaced_range`` of the original text, and ``text`` is the whole
    source with that edit made.
    """

    model_config = ConfigDict(frozen=True)

    status: MergeStatus
    text: str | None = None
    replaced_range: SourceRange | None = None
    replacement: str | None = None
    comment: str | None = None
    reason: str | None = None
    error_kind: str | None = None

    @classmethod
    def skipped(cls, reason: str) -> "MergeResult":
        return cls(status="skipped", reason=reason)

    @classmethod
    def failed(cls, error: RangeConflict) -> "MergeResult":
        return cls(status="failed", reason=error.message, error_kind=error.kind)


def detect_newline(source_text: str) -> str:
    return "\r\n" if "\r\n" in source_text else "\n"


class MergeEngine:
    """Inserts or replaces doc comments without touching any other byte."""

    def merge(
        self,
        source_text: str,
        declaration_range: SourceRange,
        existing_comment: str | None,
        generated_doc: GeneratedDoc,
        config: GenerationConfig,
        kind: DeclarationKind | None = None,
    ) -> MergeResult:
        try:
            return self._merge(
                source_text, declaration_range, existing_comment, generated_doc, config, kind
            )
        except RangeConflict as e:
            logger.warning("Merge refused at offset %d: %s", declaration_range.start, e.message)
            return MergeResult.failed(e)

    def _merge(
        self,
        source_text: str,
        declaration_range: SourceRange,
        existing_comment: str | None,
        generated_doc: GeneratedDoc,
        config: GenerationConfig,
        kind: DeclarationKind | None,
    ) -> MergeResult:
        start = declaration_range.start
        if declaration_range.end > len(source_text):
            raise RangeConflict(
                f"range {start}-{declaration_range.end} is outside the "
                f"{len(source_text)}-character source"
            )

        above = _doc_comment_above(source_text, start)
        if existing_comment is not None:
            if above is None or source_text[above.start : above.end] != existing_comment:
                raise RangeConflict("the existing comment is not directly above the declaration")
            if not config.overwrite_existing:
                return MergeResult.skipped("declaration already has a documentation comment")
        elif above is not None:
            raise RangeConflict("an undeclared documentation comment sits above the declaration")

        line_start = _line_start(source_text, start)
        decl_prefix = source_text[line_start:start]
        if above is None:
            if decl_prefix.strip():
                raise RangeConflict("code precedes the declaration on its line")
            indent = decl_prefix
            replaced = SourceRange(start=line_start, end=line_start)
        else:
            comment_line_start = _line_start(source_text, above.start)
            comment_prefix = source_text[comment_line_start : above.start]
            if comment_prefix.strip():
                raise RangeConflict("code precedes the existing comment on its line")
            # A comment sharing the declaration's line leaves the prefix non-blank.
            indent = comment_prefix if decl_prefix.strip() else decl_prefix
            replaced = SourceRange(start=comment_line_start, end=start)

        newline = detect_newline(source_text)
        comment = render_comment(generated_doc, config, kind, indent=indent, newline=newline)
        replacement = comment + newline + (indent if above is not None else "")
        text = source_text[: replaced.start] + replacement + source_text[replaced.end :]
        return MergeResult(
            status="applied",
            text=text,
            replaced_range=replaced,
            replacement=replacement,
            comment=comment,
        )


def apply_merge_results(source_text: str, results: list[MergeResult]) -> str:
    """Apply every applied result, all computed against ``source_text``.

    Edits go in descending offset order so earlier offsets stay valid.
    Overlapping edits, or two insertions at the same point, raise
    ``RangeConflict`` and nothing is applied.
    """
    edits = sorted(
        (r for r in results if r.status == "applied"),
        key=lambda r: (r.replaced_range.start, r.replaced_range.end),
    )
    for edit in edits:
        if edit.replaced_range.end > len(source_text):
            raise RangeConflict(
                f"edit at {edit.replaced_range.start}-{edit.replaced_range.end} is outside the source"
            )
    for prev, cur in zip(edits, edits[1:]):
        if prev.replaced_range.end > cur.replaced_range.start or (
            prev.replaced_range.start == cur.replaced_range.start
        ):
            raise RangeConflict(
                f"edits at {prev.replaced_range.start}-{prev.replaced_range.end} and "
                f"{cur.replaced_range.start}-{cur.replaced_range.end} overlap"
            )

    text = source_text
    for edit in reversed(edits):
        r = edit.replaced_range
        text = text[: r.start] + edit.replacement + text[r.end :]
    return text


def _line_start(text: str, offset: int) -> int:
    return text.rfind("\n", 0, offset) + 1


def _doc_comment_above(text: str, start: int) -> SourceRange | None:
    """The doc comment separated from ``start`` by whitespace only, if any."""
    p = start
    while p > 0 and text[p - 1].isspace():
        p -= 1
    if p < 2 or not text.startswith("*/", p - 2):
        return None
    _, doc_comments = mask_source(text[:p])
    for doc in reversed(doc_comments):
        if doc.end == p:
            return doc
    return None
