"""Header parsing helpers for Java-family declarations.

All helpers take *masked* text (comments and literal contents blanked out,
offsets preserved), so brackets inside strings or comments never count.
"""

from __future__ import annotations

import re
from typing import NamedTuple

MODIFIERS = frozenset(
    {
        "public",
        "protected",
        "private",
        "static",
        "final",
        "abstract",
        "synchronized",
        "native",
        "transient",
        "volatile",
        "strictfp",
        "default",
        "sealed",
        "non-sealed",
    }
)

TYPE_KEYWORDS = frozenset({"class", "interface", "enum", "record"})

_IDENT = re.compile(r"[A-Za-z_$][\w$]*")
_QUALIFIED = re.compile(r"[A-Za-z_$][\w$]*(?:\s*\.\s*[A-Za-z_$][\w$]*)*")
_TRAILING_IDENT = re.compile(r"([A-Za-z_$][\w$]*)\s*((?:\[\s*\]\s*)*)$")
_THROWS = re.compile(r"\bthrows\b(.*)", re.S)

_OPENERS = {"(": ")", "[": "]", "{": "}", "<": ">"}
_CLOSERS = {")", "]", "}", ">"}


class HeaderParts(NamedTuple):
    annotation_spans: tuple[tuple[int, int], ...]
    modifiers: tuple[str, ...]
    name: str
    return_type: str | None
    parameters: tuple[tuple[str, str], ...]
    thrown_types: tuple[str, ...]
    signature: str


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs and tighten spacing around brackets and commas."""
    s = re.sub(r"\s+", " ", text).strip()
    s = re.sub(r"\s+([(),\[\]>])", r"\1", s)
    s = re.sub(r"([(\[<])\s+", r"\1", s)
    s = re.sub(r",(?=\S)", ", ", s)
    return s


def skip_balanced(text: str, i: int, open_ch: str, close_ch: str) -> int:
    """Return the index just past the bracket that closes ``text[i]``."""
    depth = 0
    for j in range(i, len(text)):
        ch = text[j]
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return j + 1
    return len(text)


def find_top_level(text: str, chars: str, start: int = 0) -> int:
    """First index of any of ``chars`` outside bracket nesting, or -1."""
    depth = 0
    for j in range(start, len(text)):
        ch = text[j]
        if depth == 0 and ch in chars:
            return j
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS and depth > 0:
            depth -= 1
    return -1


def split_top_level(text: str, sep: str = ",") -> list[str]:
    parts: list[str] = []
    depth = 0
    last = 0
    for j, ch in enumerate(text):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS and depth > 0:
            depth -= 1
        elif ch == sep and depth == 0:
            parts.append(text[last:j])
            last = j + 1
    parts.append(text[last:])
    return parts


def split_prefix(text: str) -> tuple[list[tuple[int, int]], list[str], int]:
    """Peel leading annotations and modifiers, in any interleaving.

    Returns (annotation spans, modifiers, index where the remainder starts).
    ``@interface`` is a type keyword, not an annotation.
    """
    spans: list[tuple[int, int]] = []
    modifiers: list[str] = []
    i, n = 0, len(text)
    while True:
        while i < n and text[i].isspace():
            i += 1
        if i >= n:
            break
        if text[i] == "@":
            j = i + 1
            while j < n and text[j].isspace():
                j += 1
            m = _QUALIFIED.match(text, j)
            if not m or m.group() == "interface":
                break
            end = m.end()
            k = end
            while k < n and text[k].isspace():
                k += 1
            if k < n and text[k] == "(":
                end = skip_balanced(text, k, "(", ")")
            spans.append((i, end))
            i = end
            continue
        if text.startswith("non-sealed", i):
            modifiers.append("non-sealed")
            i += len("non-sealed")
            continue
        m = _IDENT.match(text, i)
        if m and m.group() in MODIFIERS:
            modifiers.append(m.group())
            i = m.end()
            continue
        break
    return spans, modifiers, i


def annotation_name(annotation: str) -> str:
    """``@org.junit.Test`` -> ``Test``."""
    m = _QUALIFIED.match(annotation.lstrip("@").strip())
    if not m:
        return ""
    return re.sub(r"\s+", "", m.group()).rsplit(".", 1)[-1]


def type_keyword(rest: str) -> str | None:
    """Return the type keyword that opens ``rest``, if any.

    ``record`` only counts when an identifier follows, since it is a
    contextual keyword and a legal method or variable name.
    """
    stripped = rest.lstrip()
    if stripped.startswith("@"):
        m = re.match(r"@\s*interface\b", stripped)
        return "interface" if m else None
    m = _IDENT.match(stripped)
    if not m or m.group() not in TYPE_KEYWORDS:
        return None
    if m.group() == "record":
        after = stripped[m.end():].lstrip()
        if not _IDENT.match(after):
            return None
    return m.group()


def parse_parameters(inner: str) -> tuple[tuple[str, str], ...]:
    params: list[tuple[str, str]] = []
    for part in split_top_level(inner, ","):
        part = part.strip()
        if not part:
            continue
        _, _, k = split_prefix(part)
        body = part[k:].strip()
        m = _TRAILING_IDENT.search(body)
        if not m:
            continue
        name = m.group(1)
        if name == "this":
            continue
        dims = re.sub(r"\s+", "", m.group(2))
        ptype = normalize_whitespace(body[: m.start()]) + dims
        params.append((name, ptype))
    return tuple(params)


def _signature(modifiers: list[str], rest: str) -> str:
    return normalize_whitespace(" ".join([*modifiers, rest]))


def parse_callable_header(masked: str) -> HeaderParts:
    """Parse a method or constructor header (without the body or ``;``)."""
    spans, modifiers, i = split_prefix(masked)
    rest = masked[i:]
    j = 0
    while j < len(rest) and rest[j].isspace():
        j += 1
    if j < len(rest) and rest[j] == "<":
        j = skip_balanced(rest, j, "<", ">")

    p = find_top_level(rest, "(", j)
    if p < 0:
        # Compact canonical record constructor: just the name.
        name = rest.strip()
        return HeaderParts(tuple(spans), tuple(modifiers), name, None, (), (), _signature(modifiers, rest))

    before = rest[j:p].rstrip()
    m = re.search(r"[A-Za-z_$][\w$]*$", before)
    if not m:
        raise ValueError(f"no declaration name before '(' in {normalize_whitespace(masked)!r}")
    name = m.group()
    return_type = normalize_whitespace(before[: m.start()]) or None

    close = skip_balanced(rest, p, "(", ")")
    params = parse_parameters(rest[p + 1 : close - 1])

    thrown: tuple[str, ...] = ()
    tm = _THROWS.search(rest[close:])
    if tm:
        clause = re.split(r"\bdefault\b", tm.group(1))[0]
        thrown = tuple(
            normalize_whitespace(t) for t in split_top_level(clause, ",") if t.strip()
        )

    return HeaderParts(
        tuple(spans),
        tuple(modifiers),
        name,
        return_type,
        params,
        thrown,
        _signature(modifiers, rest),
    )


def parse_type_header(masked: str) -> HeaderParts:
    """Parse a class/interface/enum/record header (without the ``{``)."""
    spans, modifiers, i = split_prefix(masked)
    rest = masked[i:]
    keyword = type_keyword(rest)
    if keyword is None:
        raise ValueError(f"not a type header: {normalize_whitespace(masked)!r}")
    stripped = rest.lstrip()
    km = re.match(r"@\s*interface|[A-Za-z_$][\w$]*", stripped)
    after = stripped[km.end():]
    nm = _IDENT.search(after)
    if not nm:
        raise ValueError(f"type without a name: {normalize_whitespace(masked)!r}")
    name = nm.group()

    params: tuple[tuple[str, str], ...] = ()
    if keyword == "record":
        tail = after[nm.end():]
        k = 0
        while k < len(tail) and tail[k].isspace():
            k += 1
        if k < len(tail) and tail[k] == "<":
            k = skip_balanced(tail, k, "<", ">")
        p = find_top_level(tail, "(", k)
        if p >= 0:
            close = skip_balanced(tail, p, "(", ")")
            params = parse_parameters(tail[p + 1 : close - 1])

    return HeaderParts(
        tuple(spans), tuple(modifiers), name, None, params, (), _signature(modifiers, rest)
    )


def parse_field_header(masked: str) -> HeaderParts:
    """Parse a field declaration; the initializer is not part of the signature."""
    spans, modifiers, i = split_prefix(masked)
    rest = masked[i:]
    eq = find_top_level(rest, "=;")
    declared = rest if eq < 0 else rest[:eq]
    first = split_top_level(declared, ",")[0]
    m = _TRAILING_IDENT.search(first.rstrip())
    if not m:
        raise ValueError(f"no field name in {normalize_whitespace(masked)!r}")
    return HeaderParts(
        tuple(spans),
        tuple(modifiers),
        m.group(1),
        None,
        (),
        (),
        _signature(modifiers, declared),
    )
