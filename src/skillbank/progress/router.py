"""Skill progress API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from skillbank.dependencies import get_gamification_service
from skillbank.progress.schemas import (
    ProgressSummaryResponse,
    ProgressUpdateRequest,
    SkillProgressResponse,
)
from skillbank.service import GamificationService

router = APIRouter(prefix="/api/v1", tags=["Progress"])


@router.get("/users/{user_id}/skills/{skill_id}/progress", response_model=SkillProgressResponse)
async def get_progress(
    user_id: int,
    skill_id: int,
    service: GamificationService = Depends(get_gamification_service),
):
    progress = await service.get_progress(user_id, skill_id)
    return SkillProgressResponse.from_domain(progress)


@router.put("/users/{user_id}/skills/{skill_id}/progress", response_model=SkillProgressResponse)
async def update_progress(
    user_id: int,
    skill_id: int,
    body: ProgressUpdateRequest,
    service: GamificationService = Depends(get_gamification_service),
):
    """Recompute progress from the given counters. Creates the record on first use."""
    progress = await service.update_progress(
        user_id, skill_id, body.sessions_completed, body.hours_spent,
    )
    return SkillProgressResponse.from_domain(progress)


@router.get("/users/{user_id}/progress/summary", response_model=ProgressSummaryResponse)
async def get_progress_summary(
    user_id: int,
    service: GamificationService = Depends(get_gamification_service),
):
    summary = await service.get_progress_summary(user_id)
    return ProgressSummaryResponse.from_domain(user_id, summary)
