from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Verbosity = Literal["terse", "standard", "detailed"]
DocTag = Literal["param", "return", "throws", "since", "author"]


class LLMSettings(BaseModel):
    provider: Literal["openai", "anthropic", "ollama"] = "openai"
    model: str = "gpt-4o-mini"
    api_key_env: str = "OPENAI_API_KEY"
    base_url: str | None = None
    max_tokens: int = Field(default=1000, gt=0)
    temperature: float = Field(default=0.1, ge=0, le=2)
    timeout: float = Field(default=30.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=1.0, ge=0)
    max_retry_delay: float = Field(default=30.0, ge=0)


class GenerationConfig(BaseModel):
    """User-facing options that shape the generated documentation."""

    model_config = ConfigDict(frozen=True)

    target_language: str = "English"
    verbosity: Verbosity = "standard"
    include_tags: frozenset[DocTag] = frozenset({"param", "return", "throws"})
    overwrite_existing: bool = False
    generate_for_class: bool = True
    generate_for_method: bool = True
    generate_for_field: bool = False
    max_context_lines: int = Field(default=200, gt=0)
    author: str | None = None
    since: str | None = None

    @field_validator("target_language")
    @classmethod
    def validate_target_language(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("target_language cannot be empty or whitespace")
        return v.strip()

    def cache_key(self) -> str:
        """Canonical string of every option that changes generated content."""
        tags = ",".join(sorted(self.include_tags))
        return (
            f"lang={self.target_language}|verbosity={self.verbosity}"
            f"|tags={tags}|overwrite={self.overwrite_existing}"
        )


class BatchConfig(BaseModel):
    max_concurrency: int = Field(default=4, ge=1, le=16)
    cache_size: int = Field(default=256, ge=0)


class DocweaverConfig(BaseModel):
    llm: LLMSettings = Field(default_factory=LLMSettings)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"

    @model_validator(mode="after")
    def validate_retry_window(self) -> "DocweaverConfig":
        if self.llm.max_retry_delay < self.llm.retry_delay:
            raise ValueError("llm.max_retry_delay must be >= llm.retry_delay")
        return self
