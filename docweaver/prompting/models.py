"""Pydantic models for prompt construction."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from docweaver.config.models import DocTag
from docweaver.extractor.models import DeclarationKind


class GenerationRequest(BaseModel):
    """A fully rendered request plus what the response validator needs to know.

    ``fingerprint`` is stable across runs for equal declarations and
    configuration, so it doubles as the cache key.
    """

    model_config = ConfigDict(frozen=True)

    system: str
    user: str
    fingerprint: str
    kind: DeclarationKind
    parameter_names: tuple[str, ...] = ()
    thrown_types: tuple[str, ...] = ()
    returns_value: bool = False
    include_tags: frozenset[DocTag] = frozenset()

    @property
    def documents_members(self) -> bool:
        """Whether @param/@return/@throws apply to this declaration at all."""
        return self.kind.is_callable
