"""Test configuration and fixtures.

Database tests run against a fresh in-memory SQLite database per test.
Unit tests for normalizers and pure helpers need none of these fixtures.
"""

import os
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime

import pytest

# Settings are read at import time, so this must precede any package import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def pytest_configure(config):
    """Register integration test marker."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test requiring database"
    )


@pytest.fixture
def make_activity() -> Callable:
    """Build an ActivityRecord with sensible defaults."""
    from activity_ledger.api.schemas.activity import ActivityRecord

    def _make(**overrides) -> ActivityRecord:
        values = {
            "slug": "pr_merged_ledger#1",
            "contributor": "alice",
            "activity_definition": "pr_merged",
            "title": "Merged pull request #1",
            "occurred_at": datetime(2024, 5, 10, 12, 0, tzinfo=UTC),
            "link": "https://github.com/acme/ledger/pull/1",
        }
        values.update(overrides)
        return ActivityRecord(**values)

    return _make


# Integration test fixtures - only used by tests in tests/integration/
@pytest.fixture(scope="function")
async def db_engine() -> AsyncGenerator:
    """Create a fresh in-memory database for each integration test."""
    from activity_ledger.db.database import create_engine, init_db

    test_engine = create_engine(TEST_DATABASE_URL)
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator:
    """Session on the test database with the activity catalog seeded."""
    from activity_ledger.db.database import create_session_maker
    from activity_ledger.services.definition_service import ActivityDefinitionService

    async with create_session_maker(db_engine)() as session:
        await ActivityDefinitionService(session).upsert_definitions()
        yield session


@pytest.fixture(scope="function")
async def client(db_session) -> AsyncGenerator:
    """Create a test client with overridden database dependency."""
    from httpx import ASGITransport, AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from activity_ledger.api.app import create_app
    from activity_ledger.db import get_db

    app = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
