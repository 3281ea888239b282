"""Row builders for database-backed tests."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from skillbank.db.models import BadgeDefinition, Skill, User


async def make_user(db: AsyncSession, username: str, **stats: float) -> User:
    user = User(username=username, **stats)
    db.add(user)
    await db.commit()
    return user


async def make_skill(db: AsyncSession, name: str = "Python") -> Skill:
    skill = Skill(name=name, category="programming")
    db.add(skill)
    await db.commit()
    return skill


async def make_badge(
    db: AsyncSession,
    name: str,
    requirements: dict | str | list,
    **fields: object,
) -> BadgeDefinition:
    badge = BadgeDefinition(name=name, requirements=requirements, **fields)
    db.add(badge)
    await db.commit()
    return badge
