"""Remote documentation generation: cache, retry and response validation."""

from docweaver.generation.cache import DocCache
from docweaver.generation.client import GenerationClient, map_llm_error
from docweaver.generation.models import GeneratedDoc
from docweaver.generation.parser import parse_generated_doc, strip_reasoning

__all__ = [
    "DocCache",
    "GeneratedDoc",
    "GenerationClient",
    "map_llm_error",
    "parse_generated_doc",
    "strip_reasoning",
]
