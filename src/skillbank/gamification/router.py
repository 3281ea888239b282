"""Badge API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from skillbank.dependencies import get_gamification_service
from skillbank.gamification.schemas import (
    AllBadgesResponse,
    BadgeCheckResponse,
    BadgeResponse,
    EarnedBadgeResponse,
    PinBadgeRequest,
    UserBadgesResponse,
)
from skillbank.service import GamificationService

router = APIRouter(prefix="/api/v1", tags=["Badges"])


@router.get("/badges", response_model=AllBadgesResponse)
async def list_badges(service: GamificationService = Depends(get_gamification_service)):
    """All active badge definitions in catalogue order."""
    badges = await service.list_badges()
    return AllBadgesResponse(badges=[BadgeResponse.from_domain(b) for b in badges])


@router.get("/badges/{badge_id}", response_model=BadgeResponse)
async def get_badge(badge_id: int, service: GamificationService = Depends(get_gamification_service)):
    badge = await service.get_badge(badge_id)
    return BadgeResponse.from_domain(badge)


@router.get("/users/{user_id}/badges", response_model=UserBadgesResponse)
async def get_user_badges(
    user_id: int,
    badge_type: str | None = Query(None, alias="type"),
    service: GamificationService = Depends(get_gamification_service),
):
    """Badges a user has earned, newest first, optionally filtered by type."""
    pairs = await service.get_user_badges(user_id, badge_type)
    earned = [EarnedBadgeResponse.from_domain(ub, b) for ub, b in pairs]
    return UserBadgesResponse(user_id=user_id, earned=earned, total_earned=len(earned))


@router.post("/users/{user_id}/badges/check", response_model=BadgeCheckResponse)
async def check_badges(user_id: int, service: GamificationService = Depends(get_gamification_service)):
    """Evaluate the catalogue for a user and award every newly qualifying badge."""
    awards = await service.check_and_award_badges(user_id)
    return BadgeCheckResponse.from_awards(user_id, awards)


@router.put("/users/{user_id}/badges/{badge_id}/pin")
async def pin_badge(
    user_id: int,
    badge_id: int,
    body: PinBadgeRequest,
    service: GamificationService = Depends(get_gamification_service),
) -> dict[str, object]:
    await service.pin_badge(user_id, badge_id, body.pinned)
    return {"status": "ok", "badge_id": badge_id, "pinned": body.pinned}
