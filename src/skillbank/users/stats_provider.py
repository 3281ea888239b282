"""User statistics snapshots read from the users table."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from skillbank.db.models import BadgeDefinition, User, UserBadge
from skillbank.domain import StatSnapshot
from skillbank.errors import NotFoundError, ValidationError
from skillbank.ports import StatsProvider

logger = logging.getLogger(__name__)


def to_snapshot(user: User, badge_count: int = 0, rarity_score: int = 0) -> StatSnapshot:
    return StatSnapshot(
        user_id=user.id,
        sessions_as_teacher=user.total_sessions_as_teacher,
        sessions_as_student=user.total_sessions_as_student,
        average_rating_as_teacher=user.average_rating_as_teacher,
        average_rating_as_student=user.average_rating_as_student,
        credits_earned=user.total_earned,
        credits_spent=user.total_spent,
        badge_count=badge_count,
        rarity_score=rarity_score,
    )


class SqlStatsProvider(StatsProvider):
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def user_exists(self, user_id: int) -> bool:
        """Plain id lookup; does not validate the stored aggregates."""
        result = await self.db.execute(select(User.id).where(User.id == user_id))
        return result.scalar_one_or_none() is not None

    async def get_user_stats(self, user_id: int) -> StatSnapshot:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return to_snapshot(user)

    async def list_all_user_stats(self) -> list[StatSnapshot]:
        """One snapshot per user, ordered by user id, with badge aggregates."""
        badge_totals = (
            select(
                UserBadge.user_id.label("user_id"),
                func.count(UserBadge.id).label("badge_count"),
                func.coalesce(func.sum(BadgeDefinition.rarity), 0).label("rarity_score"),
            )
            .join(BadgeDefinition, UserBadge.badge_id == BadgeDefinition.id)
            .group_by(UserBadge.user_id)
            .subquery()
        )
        result = await self.db.execute(
            select(
                User,
                func.coalesce(badge_totals.c.badge_count, 0),
                func.coalesce(badge_totals.c.rarity_score, 0),
            )
            .outerjoin(badge_totals, badge_totals.c.user_id == User.id)
            .order_by(User.id)
        )

        snapshots = []
        for user, badge_count, rarity_score in result.all():
            try:
                snapshots.append(to_snapshot(user, int(badge_count), int(rarity_score)))
            except ValidationError as exc:
                # A corrupt row must not sink the whole board
                logger.warning("Skipping user %s in stats batch: %s", user.id, exc.message)
        return snapshots
