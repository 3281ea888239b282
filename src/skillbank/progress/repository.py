"""SQL-backed skill progress and milestone storage."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from skillbank.db.base import as_utc
from skillbank.db.models import Milestone as MilestoneRow
from skillbank.db.models import Skill
from skillbank.db.models import SkillProgress as SkillProgressRow
from skillbank.domain import Milestone, SkillProgress
from skillbank.errors import InternalError
from skillbank.ports import ProgressRepository


def to_progress(row: SkillProgressRow) -> SkillProgress:
    return SkillProgress(
        id=row.id,
        user_id=row.user_id,
        skill_id=row.skill_id,
        sessions_completed=row.sessions_completed,
        hours_spent=row.total_hours_spent,
        percentage=row.progress_percentage,
        level=row.current_level,
        last_activity_at=as_utc(row.last_activity_at),
        estimated_completion_at=as_utc(row.estimated_completion_at),
    )


def to_milestone(row: MilestoneRow) -> Milestone:
    return Milestone(
        id=row.id,
        progress_id=row.skill_progress_id,
        threshold=row.progress_threshold,
        title=row.title,
        description=row.description,
        is_achieved=row.is_achieved,
        achieved_at=as_utc(row.achieved_at),
    )


class SqlProgressRepository(ProgressRepository):
    """Progress storage on the shared async session. The caller owns the transaction."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def skill_exists(self, skill_id: int) -> bool:
        result = await self.db.execute(select(Skill.id).where(Skill.id == skill_id))
        return result.scalar_one_or_none() is not None

    async def _get_row(self, user_id: int, skill_id: int) -> SkillProgressRow | None:
        result = await self.db.execute(
            select(SkillProgressRow).where(
                SkillProgressRow.user_id == user_id,
                SkillProgressRow.skill_id == skill_id,
            )
        )
        return result.scalar_one_or_none()

    async def load_progress(self, user_id: int, skill_id: int) -> SkillProgress | None:
        row = await self._get_row(user_id, skill_id)
        return to_progress(row) if row is not None else None

    async def list_user_progress(self, user_id: int) -> list[SkillProgress]:
        result = await self.db.execute(
            select(SkillProgressRow)
            .where(SkillProgressRow.user_id == user_id)
            .order_by(SkillProgressRow.id)
        )
        return [to_progress(row) for row in result.scalars()]

    async def create_progress(self, progress: SkillProgress) -> SkillProgress:
        row = SkillProgressRow(
            user_id=progress.user_id,
            skill_id=progress.skill_id,
            sessions_completed=progress.sessions_completed,
            total_hours_spent=progress.hours_spent,
            progress_percentage=progress.percentage,
            current_level=progress.level,
            last_activity_at=progress.last_activity_at,
            estimated_completion_at=progress.estimated_completion_at,
        )
        self.db.add(row)
        await self.db.flush()
        progress.id = row.id
        return progress

    async def save_progress(self, progress: SkillProgress) -> None:
        row = await self.db.get(SkillProgressRow, progress.id)
        if row is None:
            msg = f"Skill progress {progress.id} vanished before save"
            raise InternalError(msg)
        row.sessions_completed = progress.sessions_completed
        row.total_hours_spent = progress.hours_spent
        row.progress_percentage = progress.percentage
        row.current_level = progress.level
        row.last_activity_at = progress.last_activity_at
        row.estimated_completion_at = progress.estimated_completion_at
        await self.db.flush()

    async def create_milestones(self, milestones: list[Milestone]) -> list[Milestone]:
        rows = [
            MilestoneRow(
                skill_progress_id=m.progress_id,
                title=m.title,
                description=m.description,
                progress_threshold=m.threshold,
                is_achieved=m.is_achieved,
                achieved_at=m.achieved_at,
            )
            for m in milestones
        ]
        self.db.add_all(rows)
        await self.db.flush()
        for milestone, row in zip(milestones, rows):
            milestone.id = row.id
        return milestones

    async def load_milestones(self, progress_id: int) -> list[Milestone]:
        result = await self.db.execute(
            select(MilestoneRow)
            .where(MilestoneRow.skill_progress_id == progress_id)
            .order_by(MilestoneRow.progress_threshold)
        )
        return [to_milestone(row) for row in result.scalars()]

    async def save_milestone(self, milestone: Milestone) -> None:
        row = await self.db.get(MilestoneRow, milestone.id)
        if row is None:
            msg = f"Milestone {milestone.id} vanished before save"
            raise InternalError(msg)
        # Achieved is a one-way flag
        if milestone.is_achieved and not row.is_achieved:
            row.is_achieved = True
            row.achieved_at = milestone.achieved_at
        await self.db.flush()
