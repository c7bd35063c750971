"""Prompt construction for documentation generation."""

from docweaver.prompting.builder import PromptBuilder, fingerprint
from docweaver.prompting.models import GenerationRequest
from docweaver.prompting.prompts import SYSTEM_PROMPT

__all__ = ["GenerationRequest", "PromptBuilder", "SYSTEM_PROMPT", "fingerprint"]
