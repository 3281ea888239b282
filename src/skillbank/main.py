"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from skillbank.competition.router import router as leaderboard_router
from skillbank.config import get_settings
from skillbank.database import close_db, init_db, init_schema, session_scope
from skillbank.gamification.router import router as badges_router
from skillbank.gamification.seed import seed_badges
from skillbank.health.router import router as health_router
from skillbank.middleware import setup_middleware
from skillbank.progress.router import router as progress_router
from skillbank.redis_client import close_redis, init_redis

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_schema()
    await init_redis(settings.redis_url, settings.redis_max_connections)

    # Seed badge definitions (idempotent)
    try:
        async with session_scope() as db:
            await seed_badges(db)
    except SQLAlchemyError:
        logger.warning("Badge seeding failed", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="SkillBank Gamification API",
        description="Badges, skill progress and leaderboards for the SkillBank time-banking platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(badges_router)
    app.include_router(progress_router)
    app.include_router(leaderboard_router)

    return app


app = create_app()
