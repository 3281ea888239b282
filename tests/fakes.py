"""In-memory port implementations for core tests."""

from __future__ import annotations

import asyncio
import json
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any

from skillbank.domain import Badge, Milestone, SkillProgress, StatSnapshot, UserBadge
from skillbank.errors import InternalError, NotFoundError
from skillbank.ports import BadgeRepository, NotificationSink, ProgressRepository, StatsProvider


class FakeStats(StatsProvider):
    def __init__(self, snapshots: list[StatSnapshot] | None = None) -> None:
        self.snapshots = {s.user_id: s for s in snapshots or []}
        self.batch_calls = 0

    def set(self, snapshot: StatSnapshot) -> None:
        self.snapshots[snapshot.user_id] = snapshot

    async def user_exists(self, user_id: int) -> bool:
        return user_id in self.snapshots

    async def get_user_stats(self, user_id: int) -> StatSnapshot:
        try:
            return self.snapshots[user_id]
        except KeyError:
            raise NotFoundError(f"User {user_id} not found") from None

    async def list_all_user_stats(self) -> list[StatSnapshot]:
        self.batch_calls += 1
        return list(self.snapshots.values())


class FakeBadgeRepo(BadgeRepository):
    """Award storage with the same uniqueness guarantee as the SQL table.

    ``has_award`` yields to the event loop so concurrent award runs
    interleave between the check and the insert.
    """

    def __init__(self, badges: list[Badge] | None = None) -> None:
        self.badges = {b.id: b for b in badges or []}
        self.awards: dict[tuple[int, int], UserBadge] = {}
        self.credits: dict[int, int] = {}
        self.insert_attempts = 0
        self._next_id = 1

    async def get_badge_catalog(self) -> list[Badge]:
        return list(self.badges.values())

    async def get_badge(self, badge_id: int) -> Badge | None:
        return self.badges.get(badge_id)

    async def has_award(self, user_id: int, badge_id: int) -> bool:
        held = (user_id, badge_id) in self.awards
        await asyncio.sleep(0)
        return held

    async def insert_award_if_absent(self, user_id: int, badge_id: int) -> tuple[bool, UserBadge]:
        self.insert_attempts += 1
        key = (user_id, badge_id)
        if key in self.awards:
            return False, self.awards[key]
        award = UserBadge(
            id=self._next_id,
            user_id=user_id,
            badge_id=badge_id,
            earned_at=datetime.now(timezone.utc),
        )
        self._next_id += 1
        self.awards[key] = award
        return True, award

    async def credit_balance(self, user_id: int, amount: int) -> None:
        self.credits[user_id] = self.credits.get(user_id, 0) + amount

    async def list_user_badges(self, user_id: int) -> list[tuple[UserBadge, Badge]]:
        held = [ub for (uid, _), ub in self.awards.items() if uid == user_id]
        held.sort(key=lambda ub: (ub.earned_at, ub.id), reverse=True)
        return [(ub, self.badges[ub.badge_id]) for ub in held]

    async def set_pinned(self, user_id: int, badge_id: int, pinned: bool) -> bool:
        award = self.awards.get((user_id, badge_id))
        if award is None:
            return False
        award.is_pinned = pinned
        return True


class FakeProgressRepo(ProgressRepository):
    def __init__(self, skill_ids: set[int] | None = None) -> None:
        self.skill_ids = skill_ids if skill_ids is not None else {1}
        self.progress: dict[int, SkillProgress] = {}
        self.milestones: dict[int, Milestone] = {}
        self._next_id = 1

    def _id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    async def skill_exists(self, skill_id: int) -> bool:
        return skill_id in self.skill_ids

    async def load_progress(self, user_id: int, skill_id: int) -> SkillProgress | None:
        for p in self.progress.values():
            if p.user_id == user_id and p.skill_id == skill_id:
                return replace(p, milestones=[])
        return None

    async def list_user_progress(self, user_id: int) -> list[SkillProgress]:
        return [replace(p, milestones=[]) for p in self.progress.values() if p.user_id == user_id]

    async def create_progress(self, progress: SkillProgress) -> SkillProgress:
        progress.id = self._id()
        self.progress[progress.id] = replace(progress, milestones=[])
        return progress

    async def save_progress(self, progress: SkillProgress) -> None:
        if progress.id not in self.progress:
            raise InternalError(f"Skill progress {progress.id} vanished before save")
        self.progress[progress.id] = replace(progress, milestones=[])

    async def create_milestones(self, milestones: list[Milestone]) -> list[Milestone]:
        for m in milestones:
            m.id = self._id()
            self.milestones[m.id] = replace(m)
        return milestones

    async def load_milestones(self, progress_id: int) -> list[Milestone]:
        found = [replace(m) for m in self.milestones.values() if m.progress_id == progress_id]
        return sorted(found, key=lambda m: m.threshold)

    async def save_milestone(self, milestone: Milestone) -> None:
        stored = self.milestones[milestone.id]
        if milestone.is_achieved and not stored.is_achieved:
            self.milestones[milestone.id] = replace(milestone)


class RecordingNotifier(NotificationSink):
    def __init__(self) -> None:
        self.sent: list[tuple[int, str, dict[str, Any]]] = []

    async def notify(self, user_id: int, kind: str, payload: dict[str, Any]) -> None:
        self.sent.append((user_id, kind, payload))

    def kinds(self) -> list[str]:
        return [kind for _, kind, _ in self.sent]


class FixedClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
        self.calls = 0

    def __call__(self) -> datetime:
        value = self.now + timedelta(seconds=self.calls)
        self.calls += 1
        return value


class RecordingRedis:
    """Captures pub/sub publishes; ``fail`` makes every publish raise."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.published: list[tuple[str, str]] = []

    async def publish(self, channel: str, message: str) -> int:
        if self.fail:
            raise ConnectionError("redis down")
        self.published.append((channel, message))
        return 1

    def subtypes(self) -> list[str]:
        return [json.loads(raw)["data"]["subtype"] for _, raw in self.published]
