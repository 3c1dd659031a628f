"""Pydantic configuration models for the grain orchestrator."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

VALID_LLM_PROVIDERS = {"auto", "openai", "claude", "gemini"}


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "auto"
    model: Optional[str] = None  # None = use provider default
    api_key: Optional[str] = None
    max_tokens: int = 1200
    timeout_seconds: float = 30.0

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if v not in VALID_LLM_PROVIDERS:
            raise ValueError(f"Invalid LLM provider: {v}. Must be one of {VALID_LLM_PROVIDERS}")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {v}")
        return v


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000
    shared_secret: Optional[str] = None
    frontend_origins: list[str] = Field(default_factory=lambda: ["*"])


class StorageConfig(BaseModel):
    """SQLite store location."""

    db_path: Path = Path("~/grain/orchestrator.db")

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in the database path."""
        self.db_path = Path(self.db_path).expanduser()
        return self


class GenerationConfig(BaseModel):
    """Context and hardening limits for the generation pipeline."""

    recent_listings: int = 5
    recent_transactions: int = 5
    rewrite_min_chars: int = 20
    min_description_chars: int = 140

    @field_validator("recent_listings", "recent_transactions", "rewrite_min_chars")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Limit must be >= 0, got {v}")
        return v


class RetryConfig(BaseModel):
    """Retry/backoff configuration for provider calls."""

    max_attempts: int = 2
    min_wait: float = 1.0
    llm_max_wait: float = 8.0

    @field_validator("max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_attempts must be >= 1, got {v}")
        return v


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    json_mode: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class AppConfig(BaseModel):
    """Main configuration model."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand ${VAR} patterns in secrets."""
        self.llm.api_key = _expand(self.llm.api_key)
        self.server.shared_secret = _expand(self.server.shared_secret)
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "AppConfig":
        """Create config from a plain dict (e.g. parsed YAML)."""
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")


def _expand(value: Optional[str]) -> Optional[str]:
    if value and value.startswith("${") and value.endswith("}"):
        return os.getenv(value[2:-1], "")
    return value
