from __future__ import annotations

from typing import Annotated, Literal

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

CommaList = Annotated[list[str], NoDecode]


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    environment: Literal["development", "production", "test"] = Field(
        "development", alias="ENVIRONMENT"
    )

    openai_api_key: str | None = Field(None, alias="OPENAI_API_KEY")
    openai_text_model: str = Field("gpt-4o-mini", alias="OPENAI_TEXT_MODEL")
    openai_image_model: str = Field("dall-e-3", alias="OPENAI_IMAGE_MODEL")
    openai_vision_model: str = Field("gpt-4o", alias="OPENAI_VISION_MODEL")
    openai_timeout_seconds: float = Field(60, alias="OPENAI_TIMEOUT_SECONDS")

    database_url: str = Field(
        "sqlite:////tmp/case_studies_test.db", alias="DATABASE_URL"
    )
    db_create_all: bool = Field(False, alias="DB_CREATE_ALL")

    redis_url: str = Field("redis://localhost:6379", alias="REDIS_URL")

    auth_mode: Literal["supabase", "api_key"] = Field("supabase", alias="AUTH_MODE")
    supabase_url: str | None = Field(None, alias="SUPABASE_URL")
    supabase_anon_key: str | None = Field(None, alias="SUPABASE_ANON_KEY")
    supabase_jwt_secret: str | None = Field(
        None,
        alias="SUPABASE_JWT_SECRET",
        description="Verify bearer tokens locally instead of calling the auth API",
    )
    api_keys: CommaList = Field(default_factory=list, alias="API_KEYS")

    allowed_origins: CommaList = Field(
        default_factory=lambda: ["http://localhost:8080"], alias="ALLOWED_ORIGINS"
    )
    trusted_proxies: CommaList = Field(
        default_factory=lambda: ["127.0.0.1", "testclient"], alias="TRUSTED_PROXIES"
    )

    usage_limit: int = Field(10, alias="USAGE_LIMIT")

    rate_limit_window_seconds: int = Field(15 * 60, alias="RATE_LIMIT_WINDOW_SECONDS")
    strict_rate_limit: int = Field(5, alias="STRICT_RATE_LIMIT")
    moderate_rate_limit: int = Field(30, alias="MODERATE_RATE_LIMIT")
    general_rate_limit: int = Field(100, alias="GENERAL_RATE_LIMIT")

    max_body_bytes: int = Field(10 * 1024, alias="MAX_BODY_BYTES")
    ping_message: str = Field("ping", alias="PING_MESSAGE")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = ConfigDict(
        extra="ignore",
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("api_keys", "allowed_origins", "trusted_proxies", mode="before")
    @classmethod
    def _split_comma_list(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value
