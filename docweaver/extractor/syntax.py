"""Syntax views: where declarations live in a source text.

A host with a real parser can supply its own ``SyntaxView``; the bundled
``JavaSyntaxView`` is a lexical scanner for Java-family sources that is good
enough to find member boundaries, enclosing types and doc comments.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol, Sequence, runtime_checkable

from docweaver.extractor.models import DeclarationKind, DeclarationNode, SourceRange
from docweaver.extractor.signature import (
    find_top_level,
    parse_callable_header,
    parse_field_header,
    parse_type_header,
    skip_balanced,
    split_prefix,
    type_keyword,
)

logger = logging.getLogger(__name__)

_KEYWORD_KINDS = {
    "class": DeclarationKind.class_,
    "interface": DeclarationKind.interface,
    "enum": DeclarationKind.enum,
    "record": DeclarationKind.record,
}


@runtime_checkable
class SyntaxView(Protocol):
    """What the extractor needs from a parsed view of one source text."""

    source: str

    def declarations(self) -> Sequence[DeclarationNode]: ...


def mask_source(text: str) -> tuple[str, list[SourceRange]]:
    """Blank out comments and literal contents, keeping every offset and newline.

    Returns the masked text and the ranges of ``/** ... */`` doc comments.
    """
    out = list(text)
    docs: list[SourceRange] = []
    i, n = 0, len(text)
    while i < n:
        c = text[i]
        if c == "/" and text.startswith("//", i):
            j = text.find("\n", i)
            end = n if j < 0 else j
            _blank(out, i, end)
            i = end
        elif c == "/" and text.startswith("/*", i):
            j = text.find("*/", i + 2)
            end = n if j < 0 else j + 2
            if text.startswith("/**", i) and not text.startswith("/**/", i):
                docs.append(SourceRange(start=i, end=end))
            _blank(out, i, end)
            i = end
        elif text.startswith('"""', i):
            j = i + 3
            while j < n and not text.startswith('"""', j):
                j += 2 if text[j] == "\\" else 1
            end = min(j + 3, n)
            _blank(out, i + 3, max(i + 3, end - 3))
            i = end
        elif c in "\"'":
            j = i + 1
            while j < n and text[j] != c and text[j] != "\n":
                j += 2 if text[j] == "\\" else 1
            end = min(j + 1, n)
            _blank(out, i + 1, max(i + 1, end - 1))
            i = end
        else:
            i += 1
    return "".join(out), docs


def _blank(out: list[str], start: int, end: int) -> None:
    for k in range(start, min(end, len(out))):
        if out[k] not in "\r\n":
            out[k] = " "


def _element_default(header: str) -> int:
    """Offset of an annotation element's ``default`` clause in ``header``, or -1."""
    _, _, k = split_prefix(header)
    rest = header[k:]
    paren = find_top_level(rest, "(")
    if paren < 0:
        return -1
    close = skip_balanced(rest, paren, "(", ")")
    m = re.search(r"\bdefault\b", rest[close:])
    return k + close + m.start() if m else -1


@dataclass(frozen=True)
class _Enclosing:
    name: str
    qualified: str


class JavaSyntaxView:
    """Lexical declaration finder for Java-family sources.

    Members are recognized only directly inside type bodies; method bodies
    and initializers are skipped wholesale, so local classes are not
    reported.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.masked, self.doc_comments = mask_source(source)
        self._doc_ends = {r.end: r for r in self.doc_comments}
        self._nodes: list[DeclarationNode] = []
        self._scan_members(0, None, is_enum=False)
        self._nodes.sort(key=lambda node: node.range.start)
        logger.debug("Found %d declarations", len(self._nodes))

    def declarations(self) -> list[DeclarationNode]:
        return list(self._nodes)

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def _skip_ws(self, i: int) -> int:
        text = self.masked
        while i < len(text) and text[i].isspace():
            i += 1
        return i

    def _scan_members(self, i: int, enclosing: _Enclosing | None, is_enum: bool) -> int:
        """Scan a type body (or the compilation unit); return the index past its ``}``."""
        text = self.masked
        n = len(text)
        if is_enum:
            i = self._scan_enum_constants(i, enclosing)
        while True:
            i = self._skip_ws(i)
            if i >= n:
                return n
            ch = text[i]
            if ch == "}":
                if enclosing is not None:
                    return i + 1
                i += 1
                continue
            if ch == ";":
                i += 1
                continue
            term_pos, assign_pos = self._scan_segment(i)
            if term_pos >= n:
                return n
            if text[term_pos] == "}":
                # Header without terminator; let the loop close the body.
                i = term_pos
                continue
            i = self._record(i, term_pos, assign_pos, enclosing)

    def _scan_segment(self, i: int) -> tuple[int, int]:
        """Find the ``{``, ``;`` or ``}`` ending a member header, plus its first ``=``."""
        text = self.masked
        depth = 0
        assign = -1
        j = i
        while j < len(text):
            ch = text[j]
            if ch in "([":
                depth += 1
            elif ch in ")]":
                depth = max(0, depth - 1)
            elif depth == 0:
                if ch in "{;}":
                    return j, assign
                if (
                    ch == "="
                    and assign < 0
                    and (j == 0 or text[j - 1] not in "=!<>")
                    and text[j + 1 : j + 2] != "="
                ):
                    assign = j
            j += 1
        return j, assign

    def _skip_statement(self, i: int) -> int:
        """Skip an initializer expression to just past its ``;``."""
        text = self.masked
        depth = 0
        j = i
        while j < len(text):
            ch = text[j]
            if ch in "({[":
                depth += 1
            elif ch in ")}]":
                if depth == 0:
                    return j
                depth -= 1
            elif ch == ";" and depth == 0:
                return j + 1
            j += 1
        return j

    def _scan_enum_constants(self, i: int, enclosing: _Enclosing | None) -> int:
        text = self.masked
        depth = 0
        seg_start: int | None = None
        j = i
        while j < len(text):
            ch = text[j]
            if depth == 0 and ch in ",;}":
                if seg_start is not None:
                    self._record_constant(seg_start, j, enclosing)
                    seg_start = None
                if ch == ";":
                    return j + 1
                if ch == "}":
                    return j
            elif ch in "({[":
                depth += 1
                if seg_start is None:
                    seg_start = j
            elif ch in ")}]":
                depth -= 1
            elif seg_start is None and not ch.isspace():
                seg_start = j
            j += 1
        return j

    def _record_constant(self, start: int, end: int, enclosing: _Enclosing | None) -> None:
        segment = self.masked[start:end]
        _, _, k = split_prefix(segment)
        name = segment[k:].strip().split("(")[0].split("{")[0].strip()
        if not name:
            return
        stop = end
        while stop > start and self.masked[stop - 1].isspace():
            stop -= 1
        self._nodes.append(
            DeclarationNode(
                kind=DeclarationKind.enum_constant,
                name=name,
                range=SourceRange(start=start, end=stop),
                header_end=stop,
                enclosing_type=enclosing.qualified if enclosing else "",
                doc_comment_range=self._doc_before(start),
            )
        )

    def _record(
        self, start: int, term_pos: int, assign_pos: int, enclosing: _Enclosing | None
    ) -> int:
        text = self.masked
        term = text[term_pos]
        header = text[start:term_pos]
        assign_rel = assign_pos - start if assign_pos >= 0 else -1
        kind, name = self._classify(header, term, assign_rel, enclosing)
        default_at = _element_default(header) if kind == DeclarationKind.method else -1

        if term == "{":
            if kind is not None and kind.is_type:
                qualified = f"{enclosing.qualified}.{name}" if enclosing else name
                end = self._scan_members(
                    term_pos + 1,
                    _Enclosing(name, qualified),
                    is_enum=kind == DeclarationKind.enum,
                )
            elif kind == DeclarationKind.field or default_at >= 0:
                end = self._skip_statement(term_pos)
            else:
                end = skip_balanced(text, term_pos, "{", "}")
        else:
            end = term_pos + 1

        if kind is not None:
            body = None
            if term == "{" and kind != DeclarationKind.field and default_at < 0:
                body = SourceRange(start=term_pos, end=end)
            header_end = term_pos
            if default_at >= 0:
                header_end = start + len(header[:default_at].rstrip())
            self._nodes.append(
                DeclarationNode(
                    kind=kind,
                    name=name,
                    range=SourceRange(start=start, end=end),
                    header_end=header_end,
                    body_range=body,
                    enclosing_type=enclosing.qualified if enclosing else "",
                    doc_comment_range=self._doc_before(start),
                )
            )
        return end

    def _classify(
        self,
        header: str,
        term: str,
        assign_rel: int,
        enclosing: _Enclosing | None,
    ) -> tuple[DeclarationKind | None, str]:
        _, modifiers, k = split_prefix(header)
        rest = header[k:]

        if not rest.strip():
            if term == "{" and enclosing is not None:
                return DeclarationKind.initializer, "static" if "static" in modifiers else "instance"
            return None, ""

        try:
            if term == "{":
                keyword = type_keyword(rest)
                if keyword:
                    return _KEYWORD_KINDS[keyword], parse_type_header(header).name
            if enclosing is None:
                # package/import/module statements
                return None, ""

            paren = find_top_level(rest, "(")
            assign_in_rest = assign_rel - k if assign_rel >= 0 else -1
            if assign_in_rest >= 0 and (paren < 0 or assign_in_rest < paren):
                return DeclarationKind.field, parse_field_header(header).name
            if paren >= 0:
                parts = parse_callable_header(header)
                if parts.return_type is None:
                    return DeclarationKind.constructor, parts.name
                return DeclarationKind.method, parts.name
            if term == "{" and rest.strip() == enclosing.name:
                return DeclarationKind.constructor, enclosing.name
            if term == ";":
                return DeclarationKind.field, parse_field_header(header).name
        except ValueError:
            logger.debug("Unrecognized member header: %r", header.strip()[:80])
        return None, ""

    def _doc_before(self, start: int) -> SourceRange | None:
        p = start
        while p > 0 and self.source[p - 1].isspace():
            p -= 1
        return self._doc_ends.get(p)
