"""Pydantic response models for badge endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from skillbank.domain import AwardedBadge, Badge, UserBadge


class BadgeResponse(BaseModel):
    id: int
    name: str
    description: str
    badge_type: str
    icon: str | None = None
    rarity: int
    bonus_credits: int
    requirements: dict[str, Any] = {}

    @classmethod
    def from_domain(cls, badge: Badge) -> BadgeResponse:
        requirements = badge.requirements if isinstance(badge.requirements, dict) else {}
        return cls(
            id=badge.id,
            name=badge.name,
            description=badge.description,
            badge_type=badge.badge_type,
            icon=badge.icon,
            rarity=badge.rarity,
            bonus_credits=badge.bonus_credits,
            requirements=requirements,
        )


class AllBadgesResponse(BaseModel):
    badges: list[BadgeResponse]


class EarnedBadgeResponse(BaseModel):
    id: int
    badge: BadgeResponse
    earned_at: datetime
    is_pinned: bool = False

    @classmethod
    def from_domain(cls, user_badge: UserBadge, badge: Badge) -> EarnedBadgeResponse:
        return cls(
            id=user_badge.id,
            badge=BadgeResponse.from_domain(badge),
            earned_at=user_badge.earned_at,
            is_pinned=user_badge.is_pinned,
        )


class UserBadgesResponse(BaseModel):
    user_id: int
    earned: list[EarnedBadgeResponse]
    total_earned: int


class BadgeCheckResponse(BaseModel):
    user_id: int
    awarded: list[EarnedBadgeResponse]
    credits_awarded: int

    @classmethod
    def from_awards(cls, user_id: int, awards: list[AwardedBadge]) -> BadgeCheckResponse:
        return cls(
            user_id=user_id,
            awarded=[EarnedBadgeResponse.from_domain(a.user_badge, a.badge) for a in awards],
            credits_awarded=sum(max(a.badge.bonus_credits, 0) for a in awards),
        )


class PinBadgeRequest(BaseModel):
    pinned: bool = True
