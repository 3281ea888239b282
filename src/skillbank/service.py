"""Gamification facade: the operations offered to the request layer and workers.

Wires the SQL adapters into the core components and owns the
transaction boundary of each operation.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from skillbank.competition.leaderboard_service import LeaderboardRanker
from skillbank.domain import AwardedBadge, Badge, LeaderboardEntry, ProgressSummary, SkillProgress, UserBadge
from skillbank.errors import InternalError, NotFoundError, SkillBankError
from skillbank.gamification import badge_service
from skillbank.gamification.badge_service import BadgeAwarder
from skillbank.gamification.repository import SqlBadgeRepository
from skillbank.notifications.notification_service import DatabaseNotificationSink
from skillbank.progress.progress_service import ProgressTracker, utcnow
from skillbank.progress.repository import SqlProgressRepository
from skillbank.users.stats_provider import SqlStatsProvider

logger = structlog.get_logger()


class GamificationService:
    """Badges, skill progress and leaderboards on one database session."""

    def __init__(
        self,
        db: AsyncSession,
        redis: object | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.stats = SqlStatsProvider(db)
        self.badges = SqlBadgeRepository(db)
        self.progress = SqlProgressRepository(db)
        self.notifier = DatabaseNotificationSink(db, redis)
        self.awarder = BadgeAwarder(self.stats, self.badges, self.notifier)
        self.tracker = ProgressTracker(self.progress, self.notifier, clock)
        self.ranker = LeaderboardRanker(self.stats)

    @asynccontextmanager
    async def _transaction(self, write: bool = True) -> AsyncGenerator[None, None]:
        """Commit on success; roll back and translate storage errors on failure.

        Pub/sub notifications queued during the block go out only after the
        commit succeeds, so a failed attempt followed by a retry notifies once.
        """
        try:
            yield
            if write:
                await self.db.commit()
        except SkillBankError:
            await self._abort()
            raise
        except SQLAlchemyError as exc:
            await self._abort()
            logger.error("storage_failure", error=str(exc), exc_info=exc)
            raise InternalError("Storage failure") from exc
        except Exception:
            await self._abort()
            raise
        else:
            await self.notifier.publish_pending()

    async def _abort(self) -> None:
        self.notifier.discard_pending()
        await self.db.rollback()

    async def _require_user(self, user_id: int) -> None:
        if not await self.stats.user_exists(user_id):
            raise NotFoundError(f"User {user_id} not found")

    # --- Badges ---

    async def check_and_award_badges(self, user_id: int) -> list[AwardedBadge]:
        async with self._transaction():
            return await self.awarder.evaluate_and_award(user_id)

    async def list_badges(self) -> list[Badge]:
        async with self._transaction(write=False):
            return await badge_service.list_badges(self.badges)

    async def get_badge(self, badge_id: int) -> Badge:
        async with self._transaction(write=False):
            return await badge_service.get_badge(self.badges, badge_id)

    async def get_user_badges(
        self, user_id: int, badge_type: str | None = None,
    ) -> list[tuple[UserBadge, Badge]]:
        async with self._transaction(write=False):
            await self._require_user(user_id)
            return await badge_service.get_user_badges(self.badges, user_id, badge_type)

    async def pin_badge(self, user_id: int, badge_id: int, pinned: bool) -> None:
        async with self._transaction():
            await badge_service.pin_badge(self.badges, user_id, badge_id, pinned)

    # --- Skill progress ---

    async def get_progress(self, user_id: int, skill_id: int) -> SkillProgress:
        async with self._transaction(write=False):
            return await self.tracker.get_progress(user_id, skill_id)

    async def update_progress(
        self,
        user_id: int,
        skill_id: int,
        sessions_completed: int,
        hours_spent: float,
    ) -> SkillProgress:
        async with self._transaction():
            await self._require_user(user_id)
            return await self.tracker.update_progress(user_id, skill_id, sessions_completed, hours_spent)

    async def get_progress_summary(self, user_id: int) -> ProgressSummary:
        async with self._transaction(write=False):
            return await self.tracker.get_progress_summary(user_id)

    # --- Leaderboards ---

    async def get_leaderboard(self, dimension: str, limit: int | None = None) -> list[LeaderboardEntry]:
        async with self._transaction(write=False):
            return await self.ranker.rank(dimension, limit)
