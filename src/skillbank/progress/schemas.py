"""Pydantic models for skill progress endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from skillbank.domain import Milestone, ProgressSummary, SkillProgress


class ProgressUpdateRequest(BaseModel):
    sessions_completed: int = Field(ge=0)
    hours_spent: float = Field(ge=0, allow_inf_nan=False)


class MilestoneResponse(BaseModel):
    id: int | None
    threshold: float
    title: str
    description: str
    is_achieved: bool
    achieved_at: datetime | None = None

    @classmethod
    def from_domain(cls, milestone: Milestone) -> MilestoneResponse:
        return cls(
            id=milestone.id,
            threshold=milestone.threshold,
            title=milestone.title,
            description=milestone.description,
            is_achieved=milestone.is_achieved,
            achieved_at=milestone.achieved_at,
        )


class SkillProgressResponse(BaseModel):
    id: int | None
    user_id: int
    skill_id: int
    sessions_completed: int
    hours_spent: float
    percentage: float
    level: str
    last_activity_at: datetime
    estimated_completion_at: datetime | None = None
    milestones: list[MilestoneResponse] = []

    @classmethod
    def from_domain(cls, progress: SkillProgress) -> SkillProgressResponse:
        return cls(
            id=progress.id,
            user_id=progress.user_id,
            skill_id=progress.skill_id,
            sessions_completed=progress.sessions_completed,
            hours_spent=progress.hours_spent,
            percentage=progress.percentage,
            level=progress.level,
            last_activity_at=progress.last_activity_at,
            estimated_completion_at=progress.estimated_completion_at,
            milestones=[MilestoneResponse.from_domain(m) for m in progress.milestones],
        )


class ProgressSummaryResponse(BaseModel):
    user_id: int
    total_skills: int
    average_percentage: float
    total_hours: float
    progresses: list[SkillProgressResponse]

    @classmethod
    def from_domain(cls, user_id: int, summary: ProgressSummary) -> ProgressSummaryResponse:
        return cls(
            user_id=user_id,
            total_skills=summary.total_skills,
            average_percentage=summary.average_percentage,
            total_hours=summary.total_hours,
            progresses=[SkillProgressResponse.from_domain(p) for p in summary.progresses],
        )
