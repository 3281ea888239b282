"""Skill progress tracking.

Progress is recomputed from the supplied counters on every update.
Nothing is accumulated between calls, so regressed counters give a
regressed percentage (milestones already achieved stay achieved).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from skillbank.domain import (
    LEVEL_ADVANCED,
    LEVEL_BEGINNER,
    LEVEL_EXPERT,
    LEVEL_INTERMEDIATE,
    ProgressSummary,
    SkillProgress,
)
from skillbank.errors import NotFoundError, ValidationError
from skillbank.ports import NotificationSink, ProgressRepository
from skillbank.progress.milestones import MilestoneEngine, build_default_milestones

logger = logging.getLogger(__name__)

POINTS_PER_SESSION = 20
POINTS_PER_HOUR = 5
MAX_PERCENTAGE = 100.0

# Upper bound (exclusive) of hours spent for each level; the last level is open-ended
LEVEL_THRESHOLDS: list[tuple[float, str]] = [
    (5, LEVEL_BEGINNER),
    (20, LEVEL_INTERMEDIATE),
    (50, LEVEL_ADVANCED),
    (math.inf, LEVEL_EXPERT),
]

# Placeholder heuristic: assumes 10 percentage points per week of activity.
# It has no feedback loop and is not a projection anyone should rely on.
ASSUMED_POINTS_PER_WEEK = 10


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compute_percentage(sessions_completed: int, hours_spent: float) -> float:
    """clamp(sessions * 20 + hours * 5, 0, 100), rounded to 2 decimals."""
    raw = sessions_completed * POINTS_PER_SESSION + hours_spent * POINTS_PER_HOUR
    return round(min(max(raw, 0.0), MAX_PERCENTAGE), 2)


def compute_level(hours_spent: float) -> str:
    for upper, level in LEVEL_THRESHOLDS:
        if hours_spent < upper:
            return level
    return LEVEL_EXPERT


def estimate_completion(percentage: float, last_activity_at: datetime) -> datetime:
    """Linear extrapolation of when the skill reaches 100%."""
    remaining = max(MAX_PERCENTAGE - percentage, 0.0)
    weeks = math.ceil(remaining / ASSUMED_POINTS_PER_WEEK)
    return last_activity_at + timedelta(weeks=weeks)


def _validate_counters(sessions_completed: int, hours_spent: float) -> None:
    if isinstance(sessions_completed, bool) or not isinstance(sessions_completed, int):
        raise ValidationError("sessions_completed must be an integer")
    if sessions_completed < 0:
        raise ValidationError("sessions_completed must not be negative")
    if not math.isfinite(hours_spent) or hours_spent < 0:
        raise ValidationError("hours_spent must be a non-negative number")


class ProgressTracker:
    """Creates and updates per (user, skill) progress and drives milestones."""

    def __init__(
        self,
        repo: ProgressRepository,
        notifier: NotificationSink,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repo = repo
        self.clock = clock
        self.milestones = MilestoneEngine(repo, notifier, clock)

    async def get_progress(self, user_id: int, skill_id: int) -> SkillProgress:
        progress = await self.repo.load_progress(user_id, skill_id)
        if progress is None:
            raise NotFoundError(f"No progress for user {user_id} on skill {skill_id}")
        progress.milestones = await self.repo.load_milestones(progress.id)
        return progress

    async def update_progress(
        self,
        user_id: int,
        skill_id: int,
        sessions_completed: int,
        hours_spent: float,
    ) -> SkillProgress:
        """Recompute progress from the given counters and achieve milestones."""
        _validate_counters(sessions_completed, hours_spent)

        now = self.clock()
        percentage = compute_percentage(sessions_completed, hours_spent)
        level = compute_level(hours_spent)
        estimated = estimate_completion(percentage, now)

        progress = await self.repo.load_progress(user_id, skill_id)
        if progress is None:
            if not await self.repo.skill_exists(skill_id):
                raise NotFoundError(f"Skill {skill_id} not found")

            progress = await self.repo.create_progress(SkillProgress(
                id=None,
                user_id=user_id,
                skill_id=skill_id,
                sessions_completed=sessions_completed,
                hours_spent=hours_spent,
                percentage=percentage,
                level=level,
                last_activity_at=now,
                estimated_completion_at=estimated,
            ))
            await self.repo.create_milestones(build_default_milestones(progress.id))
            logger.info("Created skill progress (user=%s, skill=%s)", user_id, skill_id)
        else:
            progress.sessions_completed = sessions_completed
            progress.hours_spent = hours_spent
            progress.percentage = percentage
            progress.level = level
            progress.last_activity_at = now
            progress.estimated_completion_at = estimated
            await self.repo.save_progress(progress)

        await self.milestones.check(progress)
        return progress

    async def get_progress_summary(self, user_id: int) -> ProgressSummary:
        """All skills a user is learning, with averages."""
        progresses = await self.repo.list_user_progress(user_id)
        for progress in progresses:
            progress.milestones = await self.repo.load_milestones(progress.id)

        if progresses:
            average = round(sum(p.percentage for p in progresses) / len(progresses), 2)
        else:
            average = 0.0

        return ProgressSummary(
            total_skills=len(progresses),
            average_percentage=average,
            total_hours=sum(p.hours_spent for p in progresses),
            progresses=progresses,
        )
