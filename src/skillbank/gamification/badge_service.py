"""Badge award service with duplicate prevention and notification."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from skillbank.domain import BADGE_TYPES, AwardedBadge, Badge, StatSnapshot, UserBadge
from skillbank.errors import MalformedRequirementsError, NotFoundError, ValidationError
from skillbank.gamification.requirements import parse_requirements, qualifies
from skillbank.ports import BadgeRepository, NotificationSink, StatsProvider

logger = structlog.get_logger()

NOTIFICATION_BADGE_EARNED = "badge_earned"


@dataclass
class AwardRun:
    """Outcome of one evaluation pass over the catalogue."""

    awarded: list[AwardedBadge] = field(default_factory=list)
    skipped: list[tuple[int, str]] = field(default_factory=list)  # (badge_id, reason)


class BadgeAwarder:
    """Evaluates every badge for a user and awards the ones they now qualify for."""

    def __init__(
        self,
        stats: StatsProvider,
        badges: BadgeRepository,
        notifier: NotificationSink,
    ) -> None:
        self.stats = stats
        self.badges = badges
        self.notifier = notifier

    async def evaluate_and_award(self, user_id: int) -> list[AwardedBadge]:
        """Award all newly qualified badges. Returns only awards created by this call."""
        run = await self.run(user_id)
        return run.awarded

    async def run(self, user_id: int) -> AwardRun:
        snapshot = await self.stats.get_user_stats(user_id)
        catalog = await self.badges.get_badge_catalog()
        run = AwardRun()

        for badge in catalog:
            if await self.badges.has_award(user_id, badge.id):
                continue

            try:
                requirements = parse_requirements(badge.requirements)
            except MalformedRequirementsError as exc:
                # One broken badge must not stop the scan
                logger.warning(
                    "badge_requirements_malformed",
                    badge_id=badge.id,
                    badge_name=badge.name,
                    keys=exc.keys,
                    error=exc.message,
                )
                run.skipped.append((badge.id, exc.message))
                continue

            if not qualifies(snapshot, requirements):
                continue

            awarded = await self._award(snapshot, badge)
            if awarded is not None:
                run.awarded.append(awarded)

        if run.awarded:
            logger.info(
                "badges_awarded",
                user_id=user_id,
                badge_ids=[a.badge.id for a in run.awarded],
            )
        return run

    async def _award(self, snapshot: StatSnapshot, badge: Badge) -> AwardedBadge | None:
        """Insert the award, credit the bonus and notify. None if it already existed."""
        created, user_badge = await self.badges.insert_award_if_absent(snapshot.user_id, badge.id)
        if not created:
            # Lost a race with a concurrent run
            return None

        if badge.bonus_credits > 0:
            await self.badges.credit_balance(snapshot.user_id, badge.bonus_credits)

        await self.notifier.notify(
            snapshot.user_id,
            NOTIFICATION_BADGE_EARNED,
            {
                "badge_id": badge.id,
                "badge_name": badge.name,
                "badge_type": badge.badge_type,
                "rarity": badge.rarity,
                "bonus_credits": badge.bonus_credits,
                "earned_at": user_badge.earned_at.isoformat(),
            },
        )
        return AwardedBadge(user_badge=user_badge, badge=badge)


# ---------------------------------------------------------------------------
# Catalogue and ownership
# ---------------------------------------------------------------------------


async def list_badges(repo: BadgeRepository) -> list[Badge]:
    """All badges in the catalogue."""
    return await repo.get_badge_catalog()


async def get_badge(repo: BadgeRepository, badge_id: int) -> Badge:
    badge = await repo.get_badge(badge_id)
    if badge is None:
        raise NotFoundError(f"Badge {badge_id} not found")
    return badge


async def get_user_badges(
    repo: BadgeRepository,
    user_id: int,
    badge_type: str | None = None,
) -> list[tuple[UserBadge, Badge]]:
    """Badges held by a user, optionally filtered by badge type."""
    if badge_type is not None and badge_type not in BADGE_TYPES:
        raise ValidationError(f"Invalid badge type: {badge_type}. Must be one of {sorted(BADGE_TYPES)}")

    held = await repo.list_user_badges(user_id)
    if badge_type is None:
        return held
    return [(ub, b) for ub, b in held if b.badge_type == badge_type]


async def pin_badge(repo: BadgeRepository, user_id: int, badge_id: int, pinned: bool) -> None:
    """Pin or unpin a held badge for profile display."""
    if not await repo.set_pinned(user_id, badge_id, pinned):
        raise NotFoundError(f"User {user_id} does not have badge {badge_id}")
