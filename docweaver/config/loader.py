"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import DocweaverConfig


def load_config(cli_path: str | None = None) -> DocweaverConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./docweaver.yaml"),
        Path.home() / ".docweaver" / "config.yaml",
    ]

    if cli_path and not Path(cli_path).exists():
        raise ValueError(f"Config file not found: {cli_path}")

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return DocweaverConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except (TypeError, ValidationError) as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return DocweaverConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `docweaver config init`
DEFAULT_CONFIG_TEMPLATE = """\
# docweaver.yaml

# LLM Provider
llm:
  provider: "openai"           # openai | anthropic | ollama
  model: "gpt-4o-mini"
  api_key_env: "OPENAI_API_KEY"
  # base_url: "https://dashscope.aliyuncs.com/compatible-mode/v1"
  max_tokens: 1000
  temperature: 0.1
  timeout: 30                  # seconds per remote call
  max_attempts: 3              # total attempts on transient failures
  retry_delay: 1.0             # first backoff delay, doubles per attempt
  max_retry_delay: 30.0

# Generated documentation
generation:
  target_language: "English"
  verbosity: "standard"        # terse | standard | detailed
  include_tags: ["param", "return", "throws"]   # + since | author
  overwrite_existing: false
  generate_for_class: true
  generate_for_method: true
  generate_for_field: false
  max_context_lines: 200
  # author: "jdoe"
  # since: "1.0.0"

# Batch processing
batch:
  max_concurrency: 4
  cache_size: 256

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
