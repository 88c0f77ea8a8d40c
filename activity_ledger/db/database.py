from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from activity_ledger.core.config import Settings, get_settings


def _engine_options(database_url: str, app_settings: Settings) -> dict[str, Any]:
    """Pool options per backend; SQLite has no connection pool to size."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        options: dict[str, Any] = {}
        if url.database in (None, "", ":memory:"):
            # One shared connection so every session sees the same in-memory db
            options["poolclass"] = StaticPool
        return options
    return {
        "pool_size": app_settings.database_pool_size,
        "max_overflow": app_settings.database_max_overflow,
        "pool_pre_ping": True,
    }


def create_engine(
    database_url: str | None = None,
    app_settings: Settings | None = None,
) -> AsyncEngine:
    """Create an async engine; callers own its lifecycle and must dispose it."""
    app_settings = app_settings or get_settings()
    database_url = database_url or app_settings.database_url
    engine = create_async_engine(
        database_url,
        echo=app_settings.debug,
        **_engine_options(database_url, app_settings),
    )
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def create_worker_session_maker() -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create a fresh engine and session maker for worker tasks.

    Celery workers run each task in their own event loop, so they cannot share
    the engine created by the API process.
    """
    engine = create_engine()
    return engine, create_session_maker(engine)


async def init_db(engine: AsyncEngine) -> None:
    """Create all ledger tables that do not exist yet."""
    from activity_ledger.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session from the app's session maker."""
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
