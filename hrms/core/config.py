import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    env: str = Field(default="dev", description="Deployment environment")
    app_name: str = "HRMS Client"
    api_base_url: str = Field(
        default="http://localhost:5000/api/v1",
        description="Base URL of the HRMS REST API",
    )
    uploads_base_url: str = Field(
        default="http://localhost:5000",
        description="Host serving the /uploads folders",
    )
    api_token: str | None = Field(default=None, description="Bearer token sent with API requests")
    request_timeout: float = 10.0
    default_limit: int = 10
    log_level: str = "INFO"
    sentry_dsn: str | None = Field(default=None, description="Sentry DSN for error monitoring")
    otlp_endpoint: str | None = Field(default=None, description="OTLP endpoint for traces")

    model_config = SettingsConfigDict(env_prefix="HRMS_", extra="ignore")

    @field_validator("api_base_url", "uploads_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def normalize_level(cls, value: str) -> str:
        return value.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=get_settings_env_file())


def get_settings_env_file() -> str | None:
    """Resolve environment-specific env file if it exists."""
    env = os.getenv("HRMS_ENV", "dev")
    env_file = BASE_DIR / f".env.{env}"
    default_file = BASE_DIR / ".env"
    if env_file.exists():
        return str(env_file)
    if default_file.exists():
        return str(default_file)
    return None
