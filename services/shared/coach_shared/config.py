"""Application settings, read from the environment."""

import json
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

Environment = Literal["development", "staging", "production"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class DatabaseSettings(BaseSettings):
    """Account store connection.

    ``url`` may use the plain ``postgres://`` form; the engine factory
    switches it to the asyncpg driver.
    """

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = ""
    pool_size: int = Field(default=5, ge=1, le=100)
    max_overflow: int = Field(default=10, ge=0, le=100)
    echo: bool = False


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: LogLevel = "INFO"
    json_format: bool = True


class APISettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = Field(default=3001, ge=1, le=65535)
    debug: bool = Field(default=False, description="Expose /docs and enable reload")
    cors_origins: Annotated[list[str], NoDecode] = Field(default=["http://localhost:8080"])

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        # API_CORS_ORIGINS is either a JSON list or a comma-separated string
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                return json.loads(value)
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


class AuthSettings(BaseSettings):
    """Bearer token verification. An empty secret rejects every token."""

    model_config = SettingsConfigDict(env_prefix="AUTH_")

    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"


class QuotaSettings(BaseSettings):
    """Daily ceilings per tier and action. ``None`` means unlimited."""

    model_config = SettingsConfigDict(env_prefix="QUOTA_")

    free_email_generations: int | None = Field(default=3, ge=0)
    free_coaching_sessions: int | None = Field(default=1, ge=0)
    free_difficult_conversations: int | None = Field(default=1, ge=0)
    pro_email_generations: int | None = Field(default=None, ge=0)
    pro_coaching_sessions: int | None = Field(default=None, ge=0)
    pro_difficult_conversations: int | None = Field(default=None, ge=0)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        extra="ignore",
    )

    service_name: str = "leadcoach-api"
    service_version: str = "0.1.0"
    environment: Environment = "development"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: APISettings = Field(default_factory=APISettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    quota: QuotaSettings = Field(default_factory=QuotaSettings)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def refresh_settings() -> Settings:
    """Drop the cached settings and re-read the environment."""
    get_settings.cache_clear()
    return get_settings()
