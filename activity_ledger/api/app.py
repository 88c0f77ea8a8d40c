from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from activity_ledger.api.routes import router as api_router
from activity_ledger.core.config import settings
from activity_ledger.db import create_engine, create_session_maker, init_db
from activity_ledger.services.definition_service import ActivityDefinitionService

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    engine = create_engine()
    app.state.engine = engine
    app.state.session_maker = create_session_maker(engine)
    await init_db(engine)
    async with app.state.session_maker() as session:
        await ActivityDefinitionService(session).upsert_definitions()
    logger.info("API started", environment=settings.environment)
    yield
    # Shutdown
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Contributor Activity Ledger API",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routes
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()
