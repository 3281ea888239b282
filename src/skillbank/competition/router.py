"""Leaderboard API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from skillbank.competition.leaderboard_service import DEFAULT_LIMIT
from skillbank.competition.schemas import LeaderboardEntryResponse, LeaderboardResponse
from skillbank.dependencies import get_gamification_service
from skillbank.service import GamificationService

router = APIRouter(prefix="/api/v1", tags=["Leaderboards"])


@router.get("/leaderboard/{dimension}", response_model=LeaderboardResponse)
async def get_leaderboard(
    dimension: str,
    limit: int = Query(DEFAULT_LIMIT),
    service: GamificationService = Depends(get_gamification_service),
):
    """Top users for one dimension. Out-of-range limits are clamped, not rejected."""
    entries = await service.get_leaderboard(dimension, limit)
    return LeaderboardResponse(
        dimension=dimension,
        entries=[
            LeaderboardEntryResponse(rank=e.rank, user_id=e.user_id, score=e.score)
            for e in entries
        ],
    )
