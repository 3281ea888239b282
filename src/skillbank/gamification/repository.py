"""SQL-backed badge catalogue and award storage."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from skillbank.db.base import as_utc
from skillbank.db.models import BadgeDefinition, User
from skillbank.db.models import UserBadge as UserBadgeRow
from skillbank.domain import Badge, UserBadge
from skillbank.ports import BadgeRepository


def to_badge(row: BadgeDefinition) -> Badge:
    return Badge(
        id=row.id,
        name=row.name,
        description=row.description,
        badge_type=row.badge_type,
        icon=row.icon,
        requirements=row.requirements,
        bonus_credits=row.bonus_credits,
        rarity=row.rarity,
    )


def to_user_badge(row: UserBadgeRow) -> UserBadge:
    return UserBadge(
        id=row.id,
        user_id=row.user_id,
        badge_id=row.badge_id,
        earned_at=as_utc(row.earned_at),
        is_pinned=row.is_pinned,
    )


class SqlBadgeRepository(BadgeRepository):
    """Badge storage on the shared async session. The caller owns the transaction."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _insert(self):
        if self.db.get_bind().dialect.name == "sqlite":
            return sqlite_insert(UserBadgeRow)
        return pg_insert(UserBadgeRow)

    async def get_badge_catalog(self) -> list[Badge]:
        result = await self.db.execute(
            select(BadgeDefinition)
            .where(BadgeDefinition.is_active.is_(True))
            .order_by(BadgeDefinition.sort_order, BadgeDefinition.id)
        )
        return [to_badge(b) for b in result.scalars()]

    async def get_badge(self, badge_id: int) -> Badge | None:
        row = await self.db.get(BadgeDefinition, badge_id)
        return to_badge(row) if row is not None else None

    async def has_award(self, user_id: int, badge_id: int) -> bool:
        result = await self.db.execute(
            select(UserBadgeRow.id).where(
                UserBadgeRow.user_id == user_id,
                UserBadgeRow.badge_id == badge_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def insert_award_if_absent(self, user_id: int, badge_id: int) -> tuple[bool, UserBadge]:
        """INSERT ... ON CONFLICT DO NOTHING against UNIQUE(user_id, badge_id)."""
        now = datetime.now(timezone.utc)
        stmt = (
            self._insert()
            .values(user_id=user_id, badge_id=badge_id, earned_at=now, is_pinned=False)
            .on_conflict_do_nothing(index_elements=["user_id", "badge_id"])
            .returning(UserBadgeRow.id)
        )
        new_id = (await self.db.execute(stmt)).scalar_one_or_none()

        if new_id is not None:
            return True, UserBadge(id=new_id, user_id=user_id, badge_id=badge_id, earned_at=now)

        result = await self.db.execute(
            select(UserBadgeRow).where(
                UserBadgeRow.user_id == user_id,
                UserBadgeRow.badge_id == badge_id,
            )
        )
        return False, to_user_badge(result.scalar_one())

    async def credit_balance(self, user_id: int, amount: int) -> None:
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(credit_balance=User.credit_balance + amount)
        )

    async def list_user_badges(self, user_id: int) -> list[tuple[UserBadge, Badge]]:
        result = await self.db.execute(
            select(UserBadgeRow)
            .where(UserBadgeRow.user_id == user_id)
            .order_by(UserBadgeRow.earned_at.desc(), UserBadgeRow.id.desc())
        )
        return [(to_user_badge(ub), to_badge(ub.badge)) for ub in result.scalars().unique()]

    async def set_pinned(self, user_id: int, badge_id: int, pinned: bool) -> bool:
        result = await self.db.execute(
            update(UserBadgeRow)
            .where(
                UserBadgeRow.user_id == user_id,
                UserBadgeRow.badge_id == badge_id,
            )
            .values(is_pinned=pinned)
        )
        return result.rowcount > 0
