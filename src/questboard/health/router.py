"""Service banner, health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from questboard.boards.store import BoardStore
from questboard.config import get_settings
from questboard.database import get_session
from questboard.redis_client import get_redis

router = APIRouter()


@router.get("/")
async def banner() -> dict[str, str]:
    settings = get_settings()
    return {"status": "ok", "service": settings.app_name, "version": settings.app_version}


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness check: 200 while the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness check covering the database, Redis and the stored board count."""
    checks: dict[str, object] = {}
    boards: int | None = None

    try:
        await db.execute(text("SELECT 1"))
        boards = await BoardStore(db).count()
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {exc}"

    try:
        await get_redis().ping()
        checks["redis"] = "ok"
    except Exception as exc:
        checks["redis"] = f"error: {exc}"

    # Redis only backs rate limiting; the API serves without it.
    status = "ready" if checks["database"] == "ok" else "unavailable"
    if status == "ready" and checks["redis"] != "ok":
        status = "degraded"
    return {"status": status, "checks": checks, "boards": boards}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
