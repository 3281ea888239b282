"""Abstract collaborators the gamification core depends on.

Adapters live next to the domain they serve (SQL repositories, the
notification sink). Tests swap in in-memory implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from skillbank.domain import Badge, Milestone, SkillProgress, StatSnapshot, UserBadge


class StatsProvider(ABC):
    """Source of read-only user statistics."""

    @abstractmethod
    async def user_exists(self, user_id: int) -> bool:
        ...

    @abstractmethod
    async def get_user_stats(self, user_id: int) -> StatSnapshot:
        """Return the snapshot for one user. Raises NotFoundError for unknown users."""
        ...

    @abstractmethod
    async def list_all_user_stats(self) -> list[StatSnapshot]:
        """Return a snapshot per user, in a stable enumeration order."""
        ...


class BadgeRepository(ABC):
    """Badge catalogue and award storage."""

    @abstractmethod
    async def get_badge_catalog(self) -> list[Badge]:
        ...

    @abstractmethod
    async def get_badge(self, badge_id: int) -> Badge | None:
        ...

    @abstractmethod
    async def has_award(self, user_id: int, badge_id: int) -> bool:
        ...

    @abstractmethod
    async def insert_award_if_absent(self, user_id: int, badge_id: int) -> tuple[bool, UserBadge]:
        """Atomically create the award unless one exists.

        Returns ``(created, user_badge)``. When ``created`` is False the
        returned record is the pre-existing award.
        """
        ...

    @abstractmethod
    async def credit_balance(self, user_id: int, amount: int) -> None:
        ...

    @abstractmethod
    async def list_user_badges(self, user_id: int) -> list[tuple[UserBadge, Badge]]:
        ...

    @abstractmethod
    async def set_pinned(self, user_id: int, badge_id: int, pinned: bool) -> bool:
        """Toggle the pinned flag. Returns False if the user does not hold the badge."""
        ...


class ProgressRepository(ABC):
    """Skill progress and milestone storage."""

    @abstractmethod
    async def skill_exists(self, skill_id: int) -> bool:
        ...

    @abstractmethod
    async def load_progress(self, user_id: int, skill_id: int) -> SkillProgress | None:
        ...

    @abstractmethod
    async def list_user_progress(self, user_id: int) -> list[SkillProgress]:
        ...

    @abstractmethod
    async def create_progress(self, progress: SkillProgress) -> SkillProgress:
        """Insert a new record and return it with ``id`` assigned."""
        ...

    @abstractmethod
    async def save_progress(self, progress: SkillProgress) -> None:
        ...

    @abstractmethod
    async def create_milestones(self, milestones: list[Milestone]) -> list[Milestone]:
        ...

    @abstractmethod
    async def load_milestones(self, progress_id: int) -> list[Milestone]:
        ...

    @abstractmethod
    async def save_milestone(self, milestone: Milestone) -> None:
        ...


class NotificationSink(ABC):
    """Downstream delivery of achievement events."""

    @abstractmethod
    async def notify(self, user_id: int, kind: str, payload: dict[str, Any]) -> None:
        ...
