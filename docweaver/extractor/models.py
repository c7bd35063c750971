"""Pydantic models for declaration extraction."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DeclarationKind(str, Enum):
    """Closed set of constructs the syntax view can recognize."""

    method = "method"
    constructor = "constructor"
    class_ = "class"
    interface = "interface"
    enum = "enum"
    record = "record"
    field = "field"
    # Recognized but never documented.
    initializer = "initializer"
    enum_constant = "enum_constant"

    @property
    def is_type(self) -> bool:
        return self in _TYPE_KINDS

    @property
    def is_callable(self) -> bool:
        return self in (DeclarationKind.method, DeclarationKind.constructor)

    @property
    def is_supported(self) -> bool:
        return self not in (DeclarationKind.initializer, DeclarationKind.enum_constant)


_TYPE_KINDS = frozenset(
    {
        DeclarationKind.class_,
        DeclarationKind.interface,
        DeclarationKind.enum,
        DeclarationKind.record,
    }
)


class SourceRange(BaseModel):
    """Half-open character range ``[start, end)`` into a source text."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def validate_order(self) -> "SourceRange":
        if self.end < self.start:
            raise ValueError(f"range end {self.end} precedes start {self.start}")
        return self

    def contains(self, other: "SourceRange") -> bool:
        return self.start <= other.start and other.end <= self.end

    def overlaps(self, other: "SourceRange") -> bool:
        return self.start < other.end and other.start < self.end


class DeclarationNode(BaseModel):
    """One declaration as located by a syntax view.

    ``range`` starts at the first annotation or modifier and ends after the
    body's closing brace (or the terminating semicolon). ``header_end`` is
    the offset of the ``{`` or ``;`` that ends the header.
    """

    model_config = ConfigDict(frozen=True)

    kind: DeclarationKind
    name: str
    range: SourceRange
    header_end: int
    body_range: SourceRange | None = None
    enclosing_type: str = ""
    doc_comment_range: SourceRange | None = None


class Parameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str


class DeclarationContext(BaseModel):
    """Everything the prompt builder and merge engine need about one declaration."""

    model_config = ConfigDict(frozen=True)

    kind: DeclarationKind
    name: str
    signature: str
    modifiers: frozenset[str] = frozenset()
    annotations: tuple[str, ...] = ()
    parameters: tuple[Parameter, ...] = ()
    return_type: str | None = None
    thrown_types: tuple[str, ...] = ()
    enclosing_type: str = ""
    existing_comment: str | None = None
    source_range: SourceRange
    snippet: str = ""
    is_test: bool = False

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.parameters)

    @property
    def returns_value(self) -> bool:
        return self.kind == DeclarationKind.method and self.return_type not in (None, "void")
