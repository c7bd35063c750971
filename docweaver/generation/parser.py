"""Response validation: raw model output -> GeneratedDoc or MalformedResponse."""

from __future__ import annotations

import json
import re

from pydantic import BaseModel, ConfigDict, ValidationError

from docweaver.errors import MalformedResponse
from docweaver.generation.models import GeneratedDoc
from docweaver.prompting.models import GenerationRequest

_THINK_BLOCK = re.compile(r"<(think|thinking)>.*?</\1>", re.S | re.I)
_THINK_CLOSE = re.compile(r"</think(?:ing)?>", re.I)
_FENCE = re.compile(r"^```[\w-]*[ \t]*\r?\n(.*?)\r?\n?```$", re.S)


class _ParamPayload(BaseModel):
    name: str
    description: str


class _ThrowsPayload(BaseModel):
    type: str
    description: str


class _DocPayload(BaseModel):
    """Wire shape of the JSON object the system prompt asks for."""

    model_config = ConfigDict(extra="ignore")

    summary: str
    params: list[_ParamPayload] | None = None
    returns: str | None = None
    throws: list[_ThrowsPayload] | None = None


def strip_reasoning(raw: str) -> str:
    """Drop ``<think>`` reasoning blocks and a surrounding Markdown code fence."""
    text = _THINK_BLOCK.sub("", raw)
    # Some servers strip the opening tag but leave the closing one.
    text = _THINK_CLOSE.split(text)[-1].strip()
    m = _FENCE.match(text)
    if m:
        text = m.group(1).strip()
    return text


def parse_generated_doc(raw: str, request: GenerationRequest) -> GeneratedDoc:
    """Validate a model response against the request it answers.

    Parameter and return docs are only kept for methods and constructors;
    for types and fields the tag sections of the payload are ignored.
    """
    text = strip_reasoning(raw)
    if not text:
        raise MalformedResponse("empty response")
    try:
        payload = _DocPayload.model_validate(json.loads(text))
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"response is not a JSON object: {e.msg}") from e
    except ValidationError as e:
        raise MalformedResponse(f"response does not match the documentation schema: {e}") from e

    summary = payload.summary.strip()
    if not summary:
        raise MalformedResponse("summary is empty")

    if not request.documents_members:
        return GeneratedDoc(summary=summary)

    tags = request.include_tags
    return GeneratedDoc(
        summary=summary,
        param_docs=_param_docs(payload, request) if "param" in tags else {},
        return_doc=_return_doc(payload, request) if "return" in tags else None,
        throws_docs=_throws_docs(payload, request) if "throws" in tags else {},
    )


def _param_docs(payload: _DocPayload, request: GenerationRequest) -> dict[str, str]:
    documented: dict[str, str] = {}
    for param in payload.params or []:
        name = param.name.strip()
        if name in documented:
            raise MalformedResponse(f"parameter {name!r} documented twice")
        if name not in request.parameter_names:
            raise MalformedResponse(f"parameter {name!r} is not in the signature")
        description = param.description.strip()
        if not description:
            raise MalformedResponse(f"parameter {name!r} has an empty description")
        documented[name] = description

    missing = [name for name in request.parameter_names if name not in documented]
    if missing:
        raise MalformedResponse(f"missing documentation for parameter(s): {', '.join(missing)}")
    return {name: documented[name] for name in request.parameter_names}


def _return_doc(payload: _DocPayload, request: GenerationRequest) -> str | None:
    if not request.returns_value:
        return None
    returns = (payload.returns or "").strip()
    if not returns:
        raise MalformedResponse("return value is not documented")
    return returns


def _throws_docs(payload: _DocPayload, request: GenerationRequest) -> dict[str, str]:
    by_simple_name: dict[str, tuple[str, str]] = {}
    order: list[str] = []
    for entry in payload.throws or []:
        exc_type = entry.type.strip()
        description = entry.description.strip()
        if not exc_type or not description:
            raise MalformedResponse("exception entry needs both a type and a description")
        key = _simple_name(exc_type)
        if key not in by_simple_name:
            by_simple_name[key] = (exc_type, description)
            order.append(key)

    docs: dict[str, str] = {}
    for declared in request.thrown_types:
        found = by_simple_name.pop(_simple_name(declared), None)
        if found is not None:
            docs[declared] = found[1]
    for key in order:
        if key in by_simple_name:
            exc_type, description = by_simple_name[key]
            docs[exc_type] = description
    return docs


def _simple_name(type_name: str) -> str:
    return type_name.split("<", 1)[0].rsplit(".", 1)[-1].strip()
