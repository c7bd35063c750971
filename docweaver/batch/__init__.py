"""Batch coordination of documentation runs."""

from docweaver.batch.coordinator import BatchCoordinator, kind_enabled
from docweaver.batch.models import BatchResult, DeclarationOutcome, DeclarationRequest

__all__ = [
    "BatchCoordinator",
    "BatchResult",
    "DeclarationOutcome",
    "DeclarationRequest",
    "kind_enabled",
]
