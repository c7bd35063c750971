"""Javadoc rendering for GeneratedDoc values."""

from __future__ import annotations

from docweaver.config.models import GenerationConfig
from docweaver.extractor.models import DeclarationKind
from docweaver.generation.models import GeneratedDoc

# Longest summary still rendered as a one-line field comment.
_INLINE_FIELD_LIMIT = 80


def _escape(text: str) -> str:
    # A literal "*/" would close the comment early.
    return text.replace("*/", "*&#47;")


def _body_lines(text: str) -> list[str]:
    lines = [line.rstrip() for line in _escape(text).strip().splitlines()]
    return lines or [""]


def _tag_lines(tag: str, text: str) -> list[str]:
    first, *rest = _body_lines(text)
    return [f"{tag} {first}".rstrip(), *rest]


def render_lines(
    doc: GeneratedDoc,
    config: GenerationConfig,
    kind: DeclarationKind | None = None,
) -> list[str]:
    """Comment lines without indentation or line terminators.

    ``kind`` of None renders every section the doc carries; types and
    fields never get ``@param``, ``@return`` or ``@throws``.
    """
    tags = config.include_tags
    member_tags = kind is None or kind.is_callable

    tag_lines: list[str] = []
    if member_tags:
        if "param" in tags:
            for name, description in doc.param_docs.items():
                tag_lines.extend(_tag_lines(f"@param {name}", description))
        if "return" in tags and doc.return_doc:
            tag_lines.extend(_tag_lines("@return", doc.return_doc))
        if "throws" in tags:
            for exc_type, description in doc.throws_docs.items():
                tag_lines.extend(_tag_lines(f"@throws {exc_type}", description))
    if "since" in tags and config.since:
        tag_lines.append(f"@since {_escape(config.since)}")
    if "author" in tags and config.author and (kind is None or kind.is_type):
        tag_lines.append(f"@author {_escape(config.author)}")

    summary = _body_lines(doc.summary)
    if (
        kind == DeclarationKind.field
        and not tag_lines
        and len(summary) == 1
        and len(summary[0]) <= _INLINE_FIELD_LIMIT
    ):
        return [f"/** {summary[0]} */"]

    lines = ["/**"]
    lines.extend(f" * {line}".rstrip() for line in summary)
    if tag_lines:
        lines.append(" *")
        lines.extend(f" * {line}".rstrip() for line in tag_lines)
    lines.append(" */")
    return lines


def render_comment(
    doc: GeneratedDoc,
    config: GenerationConfig,
    kind: DeclarationKind | None = None,
    indent: str = "",
    newline: str = "\n",
) -> str:
    """Render a full comment block, each line prefixed with ``indent``."""
    return newline.join(indent + line for line in render_lines(doc, config, kind))
