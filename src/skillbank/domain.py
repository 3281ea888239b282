"""Domain types passed between the gamification core and its ports.

These are plain dataclasses. ORM rows never leave the repository modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from skillbank.errors import ValidationError

MIN_RATING = 1.0
MAX_RATING = 5.0

BADGE_TYPES = {"achievement", "milestone", "quality", "special"}

LEVEL_BEGINNER = "beginner"
LEVEL_INTERMEDIATE = "intermediate"
LEVEL_ADVANCED = "advanced"
LEVEL_EXPERT = "expert"


def _check_rating(name: str, value: float) -> None:
    # 0 means "not rated yet"
    if value != 0 and not MIN_RATING <= value <= MAX_RATING:
        raise ValidationError(f"{name} must be 0 or between {MIN_RATING:g} and {MAX_RATING:g}, got {value}")


@dataclass(frozen=True)
class StatSnapshot:
    """Read-only aggregate view of a user's platform activity."""

    user_id: int
    sessions_as_teacher: int = 0
    sessions_as_student: int = 0
    average_rating_as_teacher: float = 0.0
    average_rating_as_student: float = 0.0
    credits_earned: float = 0.0
    credits_spent: float = 0.0
    badge_count: int = 0
    rarity_score: int = 0

    def __post_init__(self) -> None:
        for name in (
            "sessions_as_teacher",
            "sessions_as_student",
            "credits_earned",
            "credits_spent",
            "badge_count",
            "rarity_score",
        ):
            if getattr(self, name) < 0:
                raise ValidationError(f"{name} must not be negative")
        _check_rating("average_rating_as_teacher", self.average_rating_as_teacher)
        _check_rating("average_rating_as_student", self.average_rating_as_student)

    @property
    def total_sessions(self) -> int:
        return self.sessions_as_teacher + self.sessions_as_student

    @property
    def average_rating(self) -> float:
        """Mean of the teacher and student role ratings."""
        return (self.average_rating_as_teacher + self.average_rating_as_student) / 2


@dataclass(frozen=True)
class Badge:
    id: int
    name: str
    requirements: dict[str, Any] | str
    bonus_credits: int = 0
    rarity: int = 1
    badge_type: str = "achievement"
    description: str = ""
    icon: str | None = None


@dataclass
class UserBadge:
    id: int
    user_id: int
    badge_id: int
    earned_at: datetime
    is_pinned: bool = False


@dataclass(frozen=True)
class AwardedBadge:
    """A freshly created award together with the badge it grants."""

    user_badge: UserBadge
    badge: Badge


@dataclass
class Milestone:
    id: int | None
    progress_id: int
    threshold: float
    title: str = ""
    description: str = ""
    is_achieved: bool = False
    achieved_at: datetime | None = None


@dataclass
class SkillProgress:
    id: int | None
    user_id: int
    skill_id: int
    sessions_completed: int
    hours_spent: float
    percentage: float
    level: str
    last_activity_at: datetime
    estimated_completion_at: datetime | None = None
    milestones: list[Milestone] = field(default_factory=list)


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    user_id: int
    score: float
    dimension: str


@dataclass(frozen=True)
class ProgressSummary:
    total_skills: int
    average_percentage: float
    total_hours: float
    progresses: list[SkillProgress]
