from .loader import load_config
from .models import (
    BatchConfig,
    DocTag,
    DocweaverConfig,
    GenerationConfig,
    LLMSettings,
    Verbosity,
)

__all__ = [
    "BatchConfig",
    "DocTag",
    "DocweaverConfig",
    "GenerationConfig",
    "LLMSettings",
    "Verbosity",
    "load_config",
]
