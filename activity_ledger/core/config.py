from functools import lru_cache
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from activity_ledger.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "Activity Ledger"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Redis / Celery
    redis_url: str = "redis://localhost:6379/0"
    celery_broker_url: str | None = Field(None, validate_default=True)
    celery_result_backend: str | None = Field(None, validate_default=True)
    promotion_interval_seconds: float = 900.0

    # Ingestion
    ingest_batch_size: int = Field(1000, gt=0)
    chat_min_message_length: int = Field(5, ge=0)
    chat_alias_key: str = "slack_user_id"
    default_contributor_role: str = "contributor"
    avatar_url_template: str = "https://avatars.githubusercontent.com/{username}"
    profile_url_template: str = "https://github.com/{username}"

    # Aggregation
    excluded_roles: list[str] = ["bot"]
    top_contributors_limit: int = Field(3, gt=0)
    top_contributor_activities: list[str] = [
        "pr_merged",
        "pr_opened",
        "pr_reviewed",
        "issue_opened",
        "eod_update",
    ]

    # API settings
    api_pagination_default_limit: int = 50
    api_pagination_max_limit: int = 100

    # Exports
    export_dir: str = "data/leaderboard"

    @field_validator("database_url")
    @classmethod
    def check_database_url(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("database_url must not be empty")
        return v

    @field_validator("celery_broker_url", "celery_result_backend", mode="before")
    @classmethod
    def set_celery_urls(cls, v: str | None, info: Any) -> str | None:
        if v is None and "redis_url" in info.data:
            return str(info.data["redis_url"])
        return v


def load_settings(**overrides: Any) -> Settings:
    """Build settings from the environment, failing fast on missing values."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise ConfigurationError(
            f"Invalid or missing configuration: {', '.join(fields)}"
        ) from exc


@lru_cache
def get_settings() -> Settings:
    return load_settings()


settings = get_settings()
