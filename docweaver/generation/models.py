"""Pydantic models for generated documentation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class GeneratedDoc(BaseModel):
    """Validated documentation for one declaration.

    ``param_docs`` follows parameter order; ``throws_docs`` lists declared
    exception types first, then any extra ones the model documented.
    """

    model_config = ConfigDict(frozen=True)

    summary: str
    param_docs: dict[str, str] = {}
    return_doc: str | None = None
    throws_docs: dict[str, str] = {}
