"""Prompt builder: DeclarationContext + GenerationConfig -> GenerationRequest."""

from __future__ import annotations

import hashlib

from docweaver.config.models import GenerationConfig
from docweaver.extractor.models import DeclarationContext, DeclarationKind
from docweaver.prompting.models import GenerationRequest
from docweaver.prompting.prompts import (
    _OPTIONAL_SECTIONS,
    KIND_INSTRUCTIONS,
    SYSTEM_PROMPT,
    USER_PROMPT_TEMPLATE,
    VERBOSITY_INSTRUCTIONS,
)

_FINGERPRINT_SEP = "\x1f"


class PromptBuilder:
    """Renders generation requests. Pure: equal inputs give equal requests."""

    def build(self, context: DeclarationContext, config: GenerationConfig) -> GenerationRequest:
        return GenerationRequest(
            system=SYSTEM_PROMPT,
            user=self._build_user_prompt(context, config),
            fingerprint=fingerprint(context, config),
            kind=context.kind,
            parameter_names=context.parameter_names if context.kind.is_callable else (),
            thrown_types=context.thrown_types if context.kind.is_callable else (),
            returns_value=context.returns_value,
            include_tags=config.include_tags,
        )

    @staticmethod
    def _build_user_prompt(context: DeclarationContext, config: GenerationConfig) -> str:
        """Assemble the user prompt, omitting empty optional sections."""
        parts = [
            USER_PROMPT_TEMPLATE.format(
                kind_label=_kind_label(context),
                language=config.target_language,
                signature=context.signature,
            )
        ]

        values = {
            "enclosing_type": context.enclosing_type,
            "annotations": " ".join(context.annotations),
            "parameters": ", ".join(f"`{p.type} {p.name}`" for p in context.parameters),
            "return_type": context.return_type if context.returns_value else "",
            "thrown_types": ", ".join(f"`{t}`" for t in context.thrown_types),
            "existing_comment": context.existing_comment or "",
            "snippet": context.snippet,
        }
        for field_name, template in _OPTIONAL_SECTIONS:
            value = values.get(field_name)
            if value:
                parts.append(template.format(value=value))

        parts.append("\n## Instructions")
        parts.append(f"- {KIND_INSTRUCTIONS[_instruction_key(context)]}")
        parts.append(f"- {VERBOSITY_INSTRUCTIONS[config.verbosity]}")
        parts.extend(f"- {line}" for line in _tag_requirements(context, config))
        parts.append(f"- Write every description in {config.target_language}.")
        return "\n".join(parts)


def fingerprint(context: DeclarationContext, config: GenerationConfig) -> str:
    """sha256 over the normalized signature, existing comment, kind, enclosing type and config key."""
    material = _FINGERPRINT_SEP.join(
        [
            context.kind.value,
            context.enclosing_type,
            context.signature,
            context.existing_comment or "",
            config.cache_key(),
        ]
    )
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def _kind_label(context: DeclarationContext) -> str:
    if context.is_test:
        return "test method"
    if context.kind == DeclarationKind.class_:
        return "class"
    return context.kind.value


def _instruction_key(context: DeclarationContext) -> str:
    if context.is_test:
        return "test"
    if context.kind.is_type:
        return "type"
    return context.kind.value


def _tag_requirements(context: DeclarationContext, config: GenerationConfig) -> list[str]:
    if not context.kind.is_callable:
        return []
    tags = config.include_tags
    lines: list[str] = []
    if "param" in tags and context.parameters:
        names = ", ".join(context.parameter_names)
        lines.append(f"`params` must document exactly these parameters, in order: {names}.")
    elif "param" not in tags:
        lines.append("Leave `params` empty.")
    if "return" in tags and context.returns_value:
        lines.append("`returns` is required.")
    if "throws" in tags and context.thrown_types:
        lines.append(f"`throws` must cover: {', '.join(context.thrown_types)}.")
    elif "throws" not in tags:
        lines.append("Leave `throws` empty.")
    return lines
