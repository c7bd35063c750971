"""Declaration extractor: source text + range + syntax view -> DeclarationContext."""

from __future__ import annotations

import logging
import textwrap

from docweaver.config.models import GenerationConfig
from docweaver.errors import InvalidRange, UnsupportedDeclaration
from docweaver.extractor.models import (
    DeclarationContext,
    DeclarationKind,
    DeclarationNode,
    Parameter,
    SourceRange,
)
from docweaver.extractor.signature import (
    HeaderParts,
    annotation_name,
    normalize_whitespace,
    parse_callable_header,
    parse_field_header,
    parse_type_header,
)
from docweaver.extractor.syntax import SyntaxView, mask_source

logger = logging.getLogger(__name__)

_TEST_ANNOTATIONS = frozenset({"Test", "ParameterizedTest", "RepeatedTest"})


class DeclarationExtractor:
    """Builds an immutable DeclarationContext for one declaration.

    The extractor never looks past the declaration and its directly
    preceding doc comment; everything it returns is derived from the
    source text passed in, so two extractions of the same text agree.
    """

    def __init__(self, max_context_lines: int = 200) -> None:
        self.max_context_lines = max_context_lines

    def extract(
        self,
        source_text: str,
        declaration_range: SourceRange,
        syntax_view: SyntaxView,
    ) -> DeclarationContext:
        if syntax_view.source != source_text:
            raise InvalidRange("syntax view was built from a different source text")
        if declaration_range.end > len(source_text):
            raise InvalidRange(
                f"range {declaration_range.start}-{declaration_range.end} exceeds "
                f"source length {len(source_text)}"
            )

        node = self.locate(declaration_range, syntax_view)
        if not node.kind.is_supported:
            raise UnsupportedDeclaration(
                f"{node.kind.value} {node.name!r} cannot carry generated documentation"
            )

        header = source_text[node.range.start : node.header_end]
        masked_header, _ = mask_source(header)
        try:
            parts = _parse_header(node.kind, masked_header)
        except ValueError as e:
            raise InvalidRange(f"unrecognized declaration header: {e}") from e

        annotations = tuple(normalize_whitespace(header[s:e]) for s, e in parts.annotation_spans)
        existing = None
        if node.doc_comment_range is not None:
            dr = node.doc_comment_range
            existing = source_text[dr.start : dr.end]

        context = DeclarationContext(
            kind=node.kind,
            name=parts.name or node.name,
            signature=parts.signature,
            modifiers=frozenset(parts.modifiers),
            annotations=annotations,
            parameters=tuple(Parameter(name=n, type=t) for n, t in parts.parameters),
            return_type=parts.return_type if node.kind == DeclarationKind.method else None,
            thrown_types=parts.thrown_types,
            enclosing_type=node.enclosing_type,
            existing_comment=existing,
            source_range=node.range,
            snippet=self._snippet(source_text, node),
            is_test=node.kind == DeclarationKind.method
            and any(annotation_name(a) in _TEST_ANNOTATIONS for a in annotations),
        )
        logger.debug("Extracted %s %s", context.kind.value, context.signature)
        return context

    @staticmethod
    def locate(declaration_range: SourceRange, syntax_view: SyntaxView) -> DeclarationNode:
        """Innermost declaration whose header holds the range start and whose extent holds its end."""
        candidates = [
            node
            for node in syntax_view.declarations()
            if node.range.start <= declaration_range.start <= node.header_end
            and declaration_range.end <= node.range.end
        ]
        if not candidates:
            raise InvalidRange(
                f"no declaration at {declaration_range.start}-{declaration_range.end}"
            )
        return max(candidates, key=lambda node: node.range.start)

    def _snippet(self, source_text: str, node: DeclarationNode) -> str:
        line_start = source_text.rfind("\n", 0, node.range.start) + 1
        lead = source_text[line_start : node.range.start]
        if lead.strip():
            lead = ""
        text = textwrap.dedent(lead + source_text[node.range.start : node.range.end])
        lines = text.splitlines()
        if node.kind.is_type:
            lines = [line for line in lines if line.strip() and not _is_comment_line(line)]
        limit = self.max_context_lines
        if len(lines) > limit:
            lines = lines[:limit] + [f"// ... ({len(lines) - limit} more lines truncated)"]
        return "\n".join(lines)


def collect_declarations(
    source_text: str,
    syntax_view: SyntaxView,
    config: GenerationConfig,
) -> list[DeclarationNode]:
    """Every documentable declaration of a file, in source order.

    Per-kind toggles in the config decide whether types, methods and
    constructors, or fields are included.
    """
    if syntax_view.source != source_text:
        raise InvalidRange("syntax view was built from a different source text")
    selected: list[DeclarationNode] = []
    for node in syntax_view.declarations():
        if not node.kind.is_supported:
            continue
        if node.kind.is_type and not config.generate_for_class:
            continue
        if node.kind.is_callable and not config.generate_for_method:
            continue
        if node.kind == DeclarationKind.field and not config.generate_for_field:
            continue
        selected.append(node)
    return selected


def _parse_header(kind: DeclarationKind, masked_header: str) -> HeaderParts:
    if kind.is_type:
        return parse_type_header(masked_header)
    if kind == DeclarationKind.field:
        return parse_field_header(masked_header)
    return parse_callable_header(masked_header)


def _is_comment_line(line: str) -> bool:
    stripped = line.lstrip()
    return stripped.startswith(("//", "/*", "*"))
