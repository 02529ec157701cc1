"""Application configuration utilities."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings derived from environment variables."""

    app_name: str = Field(default="Cash Call Manager", alias="APP_NAME")
    environment: str = Field(default="dev", alias="ENVIRONMENT")
    database_url: str = Field(
        default="sqlite:///./cashcall.db", alias="DATABASE_URL"
    )
    api_prefix: str = Field(default="/api", alias="API_PREFIX")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    identity_provider: str = Field(default="memory", alias="IDENTITY_PROVIDER")
    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_service_role_key: str | None = Field(
        default=None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    identity_timeout_seconds: float = Field(
        default=10.0, alias="IDENTITY_TIMEOUT_SECONDS"
    )
    rollback_identity_on_profile_failure: bool = Field(
        default=False, alias="ROLLBACK_IDENTITY_ON_PROFILE_FAILURE"
    )

    enforce_cash_call_transitions: bool = Field(
        default=True, alias="ENFORCE_CASH_CALL_TRANSITIONS"
    )
    app_url: str = Field(default="http://localhost:3000", alias="APP_URL")

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("identity_provider")
    @classmethod
    def _normalize_identity_provider(cls, value: str) -> str:
        normalized = (value or "").strip().lower()
        if normalized not in {"memory", "supabase"}:
            raise ValueError("IDENTITY_PROVIDER must be 'memory' or 'supabase'")
        return normalized

    @field_validator("api_prefix")
    @classmethod
    def _normalize_api_prefix(cls, value: str) -> str:
        prefix = (value or "").strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = f"/{prefix}"
        return prefix

    @property
    def cors_origin_list(self) -> list[str]:
        """Return the configured CORS origins as a list."""

        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def login_url(self) -> str:
        """Return the URL new users are sent to after provisioning."""

        return f"{self.app_url.rstrip('/')}/login"


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


__all__ = ["Settings", "get_settings"]
