"""FastAPI dependencies shared by the routers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skillbank.config import get_settings
from skillbank.database import get_session
from skillbank.redis_client import get_optional_redis
from skillbank.service import GamificationService


async def get_gamification_service(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> GamificationService:
    """Gamification facade bound to the request's database session."""
    settings = get_settings()
    redis = get_optional_redis() if settings.notification_pubsub_enabled else None
    return GamificationService(db, redis)
