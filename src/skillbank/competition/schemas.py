"""Pydantic response models for leaderboard endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class LeaderboardEntryResponse(BaseModel):
    rank: int
    user_id: int
    score: float


class LeaderboardResponse(BaseModel):
    dimension: str
    entries: list[LeaderboardEntryResponse]
