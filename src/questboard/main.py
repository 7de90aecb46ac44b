"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from questboard.boards.router import router as boards_router
from questboard.config import get_settings
from questboard.database import close_db, init_db
from questboard.health.router import router as health_router
from questboard.middleware import setup_middleware
from questboard.redis_client import close_redis, init_redis

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the document store and Redis; close both on shutdown."""
    settings = get_settings()
    await init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    await init_redis(settings.redis_url)
    logger.info("startup_complete", environment=settings.environment, version=settings.app_version)

    yield

    await close_db()
    await close_redis()
    logger.info("shutdown_complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Achievement-tree boards: nodes, edges, progress and derived stats",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(boards_router)

    return app


app = create_app()
