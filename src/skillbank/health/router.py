"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from skillbank.config import get_settings
from skillbank.database import get_session
from skillbank.db.models import BadgeDefinition
from skillbank.redis_client import redis_status

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe.

    The database is required. Redis is only required when notification
    pub/sub is enabled; otherwise it is reported but does not degrade.
    """
    settings = get_settings()
    checks: dict[str, object] = {}
    required = ["database"]

    try:
        active_badges = await db.scalar(
            select(func.count(BadgeDefinition.id)).where(BadgeDefinition.is_active.is_(True))
        )
        checks["database"] = "ok"
        checks["badge_catalogue"] = active_badges or 0
    except SQLAlchemyError as exc:
        checks["database"] = f"error: {exc}"

    checks["redis"] = await redis_status()
    if settings.notification_pubsub_enabled:
        required.append("redis")

    all_ok = all(checks[name] == "ok" for name in required)
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
