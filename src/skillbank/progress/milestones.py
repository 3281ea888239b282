"""Milestone engine: fixed percentage checkpoints per skill progress.

Each milestone moves from unachieved to achieved exactly once and never
moves back. A single update may cross several thresholds.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from skillbank.domain import Milestone, SkillProgress
from skillbank.ports import NotificationSink, ProgressRepository

logger = logging.getLogger(__name__)

NOTIFICATION_MILESTONE_ACHIEVED = "milestone_achieved"

DEFAULT_MILESTONES: list[dict] = [
    {"threshold": 10, "title": "Getting Started", "description": "Complete your first session"},
    {"threshold": 25, "title": "Beginner", "description": "Reach 25% progress"},
    {"threshold": 50, "title": "Intermediate", "description": "Reach 50% progress"},
    {"threshold": 75, "title": "Advanced", "description": "Reach 75% progress"},
    {"threshold": 100, "title": "Expert", "description": "Reach 100% progress"},
]


def build_default_milestones(progress_id: int) -> list[Milestone]:
    """Fresh, unachieved default milestones for a new progress record."""
    return [
        Milestone(
            id=None,
            progress_id=progress_id,
            threshold=float(m["threshold"]),
            title=m["title"],
            description=m["description"],
        )
        for m in DEFAULT_MILESTONES
    ]


def advance_milestones(
    milestones: list[Milestone],
    percentage: float,
    clock: Callable[[], datetime],
) -> list[Milestone]:
    """Mark every reached, unachieved milestone as achieved.

    Mutates the given milestones in place and returns the newly achieved
    ones in ascending threshold order.
    """
    newly_achieved = []
    for milestone in sorted(milestones, key=lambda m: m.threshold):
        if milestone.is_achieved:
            continue
        if milestone.threshold > percentage:
            # Ascending order: nothing later can be reached either
            break
        milestone.is_achieved = True
        milestone.achieved_at = clock()
        newly_achieved.append(milestone)
    return newly_achieved


class MilestoneEngine:
    """Applies a progress update to its milestones and notifies per achievement."""

    def __init__(
        self,
        repo: ProgressRepository,
        notifier: NotificationSink,
        clock: Callable[[], datetime],
    ) -> None:
        self.repo = repo
        self.notifier = notifier
        self.clock = clock

    async def check(self, progress: SkillProgress) -> list[Milestone]:
        """Achieve milestones reached by ``progress.percentage``.

        Returns the milestones achieved by this call (empty when the
        percentage is stable or has regressed).
        """
        milestones = await self.repo.load_milestones(progress.id)
        achieved = advance_milestones(milestones, progress.percentage, self.clock)

        for milestone in achieved:
            await self.repo.save_milestone(milestone)
            await self.notifier.notify(
                progress.user_id,
                NOTIFICATION_MILESTONE_ACHIEVED,
                {
                    "milestone_id": milestone.id,
                    "skill_id": progress.skill_id,
                    "threshold": milestone.threshold,
                    "title": milestone.title,
                    "achieved_at": milestone.achieved_at.isoformat(),
                },
            )

        if achieved:
            logger.info(
                "Milestones achieved: %s (user=%s, skill=%s)",
                [m.threshold for m in achieved], progress.user_id, progress.skill_id,
            )

        progress.milestones = sorted(milestones, key=lambda m: m.threshold)
        return achieved
