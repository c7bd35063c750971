"""Error taxonomy for the documentation pipeline.

Every error carries a ``kind`` string so the batch layer can record it
against a single declaration without inspecting the class hierarchy.
"""

from __future__ import annotations


class DocweaverError(Exception):
    """Base class for all pipeline errors."""

    kind = "error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class ExtractionError(DocweaverError):
    kind = "extraction"


class InvalidRange(ExtractionError):
    """The range does not line up with a recognizable declaration."""

    kind = "invalid_range"


class UnsupportedDeclaration(ExtractionError):
    """The construct at the range is not a method, constructor, type, or field."""

    kind = "unsupported_declaration"


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class GenerationError(DocweaverError):
    kind = "generation"
    retryable = False


class GenerationTimeout(GenerationError):
    kind = "timeout"
    retryable = True


class ServiceUnavailable(GenerationError):
    """Connection reset, 5xx, or rate limiting."""

    kind = "unavailable"
    retryable = True


class Rejected(GenerationError):
    kind = "rejected"


class Unauthorized(GenerationError):
    kind = "unauthorized"


class MalformedResponse(GenerationError):
    kind = "malformed_response"


class Cancelled(GenerationError):
    kind = "cancelled"


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


class MergeError(DocweaverError):
    kind = "merge"


class RangeConflict(MergeError):
    """The declaration range no longer matches the source text."""

    kind = "range_conflict"
