"""Pydantic models for configuration validation."""

from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class OllamaConfig(BaseModel):
    """Ollama LLM configuration."""

    base_url: str = Field(default="http://localhost:11434", description="Ollama base URL")
    model: str = Field(..., description="Model name")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Temperature")
    max_tokens: int = Field(default=1024, gt=0, description="Maximum tokens")
    context_window: Optional[int] = Field(default=None, description="Context window size")


class OpenAIConfig(BaseModel):
    """OpenAI LLM configuration."""

    api_key: str = Field(..., description="OpenAI API key")
    model: str = Field(default="gpt-4o-mini", description="Model name")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Temperature")
    max_tokens: int = Field(default=1024, gt=0, description="Maximum tokens")
    organization_id: Optional[str] = Field(default=None, description="Organization ID")
    base_url: Optional[str] = Field(default=None, description="OpenAI-compatible endpoint")


class GeminiConfig(BaseModel):
    """Gemini LLM configuration."""

    api_key: str = Field(..., description="Gemini API key")
    model: str = Field(default="gemini-2.0-flash", description="Model name")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Temperature")
    max_tokens: int = Field(default=1024, gt=0, description="Maximum tokens")
    safety_settings: Optional[dict] = Field(default=None, description="Safety settings")


class LLMConfig(BaseModel):
    """LLM configuration."""

    provider: str = Field(..., description="Provider: 'ollama', 'openai', or 'gemini'")
    ollama: Optional[OllamaConfig] = Field(default=None, description="Ollama configuration")
    openai: Optional[OpenAIConfig] = Field(default=None, description="OpenAI configuration")
    gemini: Optional[GeminiConfig] = Field(default=None, description="Gemini configuration")


class SchedulerConfig(BaseModel):
    """Scheduling engine configuration."""

    assist_mode: Literal["conversational", "structured"] = Field(
        default="conversational",
        description="Model contract: 'conversational' actions or 'structured' extraction",
    )
    assist_timeout_seconds: float = Field(default=10.0, gt=0, description="Hard limit per model call")
    max_parse_attempts: int = Field(default=3, ge=1, le=10, description="Structured parse attempts")
    history_limit: int = Field(default=10, ge=2, description="Conversation turns kept per user")
    assist_history_turns: int = Field(default=6, ge=0, description="Recent turns sent to the model")
    default_duration_minutes: int = Field(default=60, gt=0, description="Default task length")
    min_duration_minutes: int = Field(default=30, gt=0, description="Minimum length after an adjustment")
    weekday_default_hour: int = Field(default=16, ge=0, le=23, description="Default start hour Mon-Fri")
    weekend_default_hour: int = Field(default=10, ge=0, le=23, description="Default start hour Sat-Sun")
    plan_session_count: int = Field(default=3, ge=1, le=7, description="Sessions in a deterministic plan")

    @field_validator("history_limit")
    @classmethod
    def validate_history_limit(cls, v: int) -> int:
        """History holds user/assistant pairs."""
        if v % 2:
            raise ValueError(f"history_limit must be an even number, got {v}")
        return v

    @model_validator(mode="after")
    def validate_limits(self) -> "SchedulerConfig":
        if self.assist_history_turns > self.history_limit:
            raise ValueError(
                f"assist_history_turns ({self.assist_history_turns}) cannot exceed "
                f"history_limit ({self.history_limit})"
            )
        if self.min_duration_minutes > self.default_duration_minutes:
            raise ValueError("min_duration_minutes cannot exceed default_duration_minutes")
        return self


class DatabaseConfig(BaseModel):
    """Database configuration."""

    task_db: str = Field(default="data/tasks.db", description="Task database path")


class AppConfig(BaseModel):
    """Main application configuration."""

    llm: Optional[LLMConfig] = Field(default=None, description="LLM configuration (omit for deterministic mode)")
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig, description="Scheduler configuration")
    database: DatabaseConfig = Field(default_factory=DatabaseConfig, description="Database configuration")

    def validate(self) -> None:
        """Validate configuration consistency."""
        if self.llm is None:
            return

        provider_configs = {
            "ollama": self.llm.ollama,
            "openai": self.llm.openai,
            "gemini": self.llm.gemini,
        }

        if self.llm.provider not in provider_configs:
            raise ValueError(f"Unknown LLM provider: {self.llm.provider}")

        if not provider_configs[self.llm.provider]:
            raise ValueError(f"{self.llm.provider} configuration is required when provider is '{self.llm.provider}'")
