"""Default badge catalogue, seeded idempotently on startup."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from skillbank.db.models import BadgeDefinition
from skillbank.gamification.requirements import parse_requirements

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    # Milestones
    {
        "name": "First Steps",
        "description": "Complete your first session, teaching or learning",
        "badge_type": "milestone",
        "requirements": {"total_sessions": 1},
        "bonus_credits": 1,
        "rarity": 1,
        "sort_order": 1,
    },
    {
        "name": "Dedicated Participant",
        "description": "Complete 10 sessions in total",
        "badge_type": "milestone",
        "requirements": {"total_sessions": 10},
        "bonus_credits": 2,
        "rarity": 2,
        "sort_order": 2,
    },
    {
        "name": "Community Pillar",
        "description": "Complete 50 sessions in total",
        "badge_type": "milestone",
        "requirements": {"total_sessions": 50},
        "bonus_credits": 5,
        "rarity": 4,
        "sort_order": 3,
    },
    # Achievements
    {
        "name": "Dedicated Teacher",
        "description": "Teach 20 sessions",
        "badge_type": "achievement",
        "requirements": {"teaching_sessions": 20},
        "bonus_credits": 3,
        "rarity": 3,
        "sort_order": 4,
    },
    {
        "name": "Knowledge Seeker",
        "description": "Learn in 10 sessions",
        "badge_type": "achievement",
        "requirements": {"learning_sessions": 10},
        "bonus_credits": 2,
        "rarity": 2,
        "sort_order": 5,
    },
    {
        "name": "Platinum Teacher",
        "description": "Earn 100 credits by teaching",
        "badge_type": "achievement",
        "requirements": {"credits_earned": 100},
        "bonus_credits": 10,
        "rarity": 5,
        "sort_order": 6,
    },
    # Quality
    {
        "name": "Top Tutor",
        "description": "Keep an average rating of 4.8 or better over 10 sessions",
        "badge_type": "quality",
        "requirements": {"average_rating": 4.8, "total_sessions": 10},
        "bonus_credits": 5,
        "rarity": 4,
        "sort_order": 7,
    },
    {
        "name": "Well Rated",
        "description": "Keep an average rating of 4.0 or better",
        "badge_type": "quality",
        "requirements": {"average_rating": 4.0, "total_sessions": 3},
        "bonus_credits": 1,
        "rarity": 2,
        "sort_order": 8,
    },
    # Special
    {
        "name": "Renaissance Member",
        "description": "Teach and learn at least 25 sessions each",
        "badge_type": "special",
        "requirements": {"teaching_sessions": 25, "learning_sessions": 25},
        "bonus_credits": 15,
        "rarity": 8,
        "sort_order": 9,
    },
]


async def seed_badges(db: AsyncSession) -> int:
    """Insert catalogue badges that do not exist yet. Returns the number inserted."""
    result = await db.execute(select(BadgeDefinition.name))
    existing = set(result.scalars())

    inserted = 0
    for badge in BADGE_SEED_DATA:
        if badge["name"] in existing:
            continue
        # Seed data goes through the same validation as admin-created badges
        parse_requirements(badge["requirements"])
        db.add(BadgeDefinition(**badge))
        inserted += 1

    await db.commit()
    if inserted:
        logger.info("Seeded %d badge definitions", inserted)
    return inserted
