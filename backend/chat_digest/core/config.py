from functools import lru_cache
from typing import Any, Literal, get_args

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LOG_LEVELS: tuple[str, ...] = get_args(LogLevel)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Summarization backend
    ai_provider: Literal["ollama", "claude"] = "ollama"

    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3"
    ollama_timeout_seconds: float = 60.0

    anthropic_api_key: str | None = None
    claude_model: str = "claude-sonnet-4-20250514"
    claude_max_tokens: int = 4096

    # Microsoft Graph
    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    graph_timeout_seconds: float = 30.0
    # Normally handed over by the sign-in flow; only read by the CLI
    graph_access_token: str | None = None

    # Serve canned chats/messages instead of calling Graph
    use_fixture_data: bool = Field(
        default=False,
        description="Use local fixture data instead of the live Graph API",
        validation_alias=AliasChoices("MOCK_MODE", "USE_FIXTURE_DATA"),
    )

    chat_days_back: int = Field(default=7, ge=1)
    chat_max_results: int = Field(default=50, ge=1)

    database_url: str = "sqlite:///./data/chat_digest.db"

    log_level: LogLevel = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_provider_settings(self) -> "Settings":
        if self.ai_provider == "claude" and not self.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY is required when AI_PROVIDER=claude")
        if self.ai_provider == "ollama" and not self.ollama_model:
            raise ValueError("OLLAMA_MODEL is required when AI_PROVIDER=ollama")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
