"""Pydantic models for batch documentation runs."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from docweaver.extractor.models import SourceRange
from docweaver.extractor.syntax import SyntaxView
from docweaver.merge.engine import MergeResult

OutcomeStatus = Literal["applied", "skipped", "failed", "cancelled"]


class DeclarationRequest(BaseModel):
    """One declaration to document, addressed by range into ``source_text``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    source_text: str
    range: SourceRange
    syntax_view: SyntaxView
    label: str = ""


class DeclarationOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    label: str
    status: OutcomeStatus
    merge: MergeResult | None = None
    error_kind: str | None = None
    message: str | None = None


class BatchResult(BaseModel):
    """Outcomes in request order, one per request."""

    outcomes: list[DeclarationOutcome] = Field(default_factory=list)
    duration_seconds: float = 0.0

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def applied(self) -> int:
        return self._count("applied")

    @property
    def skipped(self) -> int:
        return self._count("skipped")

    @property
    def failed(self) -> int:
        return self._count("failed")

    @property
    def cancelled(self) -> int:
        return self._count("cancelled")

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def merge_results(self) -> list[MergeResult]:
        """Applied merge results, ready for ``apply_merge_results``."""
        return [o.merge for o in self.outcomes if o.merge is not None and o.status == "applied"]
