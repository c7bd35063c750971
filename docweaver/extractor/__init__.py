"""Declaration extraction for Java-family sources."""

from docweaver.extractor.extractor import DeclarationExtractor, collect_declarations
from docweaver.extractor.models import (
    DeclarationContext,
    DeclarationKind,
    DeclarationNode,
    Parameter,
    SourceRange,
)
from docweaver.extractor.syntax import JavaSyntaxView, SyntaxView, mask_source

__all__ = [
    "DeclarationContext",
    "DeclarationExtractor",
    "DeclarationKind",
    "DeclarationNode",
    "JavaSyntaxView",
    "Parameter",
    "SourceRange",
    "SyntaxView",
    "collect_declarations",
    "mask_source",
]
