import pytest

from activity_ledger.core.config import load_settings
from activity_ledger.core.exceptions import ConfigurationError


class TestSettings:
    """Tests for settings loading."""

    def test_missing_database_url_fails_fast(self, monkeypatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(ConfigurationError, match="database_url"):
            load_settings(_env_file=None)

    def test_empty_database_url_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            load_settings(database_url="  ")

    def test_batch_size_must_be_positive(self) -> None:
        with pytest.raises(ConfigurationError, match="ingest_batch_size"):
            load_settings(database_url="sqlite+aiosqlite://", ingest_batch_size=0)

    def test_celery_urls_default_to_redis(self, monkeypatch) -> None:
        monkeypatch.delenv("CELERY_BROKER_URL", raising=False)
        monkeypatch.delenv("CELERY_RESULT_BACKEND", raising=False)
        settings = load_settings(
            database_url="sqlite+aiosqlite://",
            redis_url="redis://cache:6379/2",
        )
        assert settings.celery_broker_url == "redis://cache:6379/2"
        assert settings.celery_result_backend == "redis://cache:6379/2"

    def test_defaults(self) -> None:
        settings = load_settings(database_url="sqlite+aiosqlite://")
        assert settings.ingest_batch_size == 1000
        assert settings.chat_min_message_length == 5
        assert settings.excluded_roles == ["bot"]
        assert settings.top_contributors_limit == 3
