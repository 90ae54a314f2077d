"""Environment configuration and validation.

This module defines strongly-typed application settings loaded from environment variables
(optionally via a local `.env` file). The same settings object feeds the HTTP API, the CLI, and the
standalone DB scripts.
"""

from __future__ import annotations

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    database_url: str = Field(alias="DATABASE_URL")
    db_pool_max_size: int = Field(default=10, alias="DB_POOL_MAX_SIZE")

    github_api_url: str = Field(default="https://api.github.com", alias="GITHUB_API_URL")
    http_timeout_s: float = Field(default=5.0, alias="HTTP_TIMEOUT_S")

    llm_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    llm_model: str = Field(default="gpt-4o", alias="LLM_MODEL")
    llm_api_base: str = Field(default="https://api.openai.com/v1", alias="LLM_API_BASE")
    llm_timeout_s: float = Field(default=30.0, alias="LLM_TIMEOUT_S")

    web_user: str = Field(default="yourusername", alias="WEB_USER")
    web_password: str = Field(default="yourpassword", alias="WEB_PASSWORD")
    http_host: str = Field(default="0.0.0.0", alias="HTTP_HOST")
    http_port: int = Field(default=6789, alias="HTTP_PORT")

    populate_path: str = Field(default="conf/populate/users.json", alias="POPULATE_PATH")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("http_timeout_s", "llm_timeout_s")
    @classmethod
    def validate_timeout_positive(cls, value: float) -> float:
        """Outbound HTTP calls always run under a short, positive timeout."""

        if value <= 0:
            raise ValueError("timeouts must be positive")
        return value

    @field_validator("db_pool_max_size")
    @classmethod
    def validate_pool_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("DB_POOL_MAX_SIZE must be >= 1")
        return value


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Raises:
        RuntimeError: If the environment configuration is missing or invalid.
    """

    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc
