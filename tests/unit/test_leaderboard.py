"""Leaderboard ranking: ordering, ties, limits and dimensions."""

from __future__ import annotations

import pytest

from skillbank.competition.leaderboard_service import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    LeaderboardRanker,
    clamp_limit,
    rank_snapshots,
)
from skillbank.domain import StatSnapshot
from skillbank.errors import ValidationError
from tests.fakes import FakeStats


def _teacher(user_id: int, sessions: int) -> StatSnapshot:
    return StatSnapshot(user_id=user_id, sessions_as_teacher=sessions)


class TestClampLimit:
    @pytest.mark.parametrize(
        ("limit", "expected"),
        [(None, DEFAULT_LIMIT), (0, DEFAULT_LIMIT), (-3, DEFAULT_LIMIT), (1, 1), (100, 100), (1000, MAX_LIMIT)],
    )
    def test_clamp(self, limit, expected):
        assert clamp_limit(limit) == expected


class TestRankSnapshots:
    def test_highest_first_with_ranks(self):
        entries = rank_snapshots([_teacher(1, 5), _teacher(2, 9), _teacher(3, 7)], "sessions")
        assert [(e.rank, e.user_id, e.score) for e in entries] == [(1, 2, 9), (2, 3, 7), (3, 1, 5)]
        assert {e.dimension for e in entries} == {"sessions"}

    def test_ties_keep_input_order(self):
        snapshots = [_teacher(30, 4), _teacher(10, 4), _teacher(20, 4), _teacher(40, 8)]
        entries = rank_snapshots(snapshots, "sessions")
        assert [e.user_id for e in entries] == [40, 30, 10, 20]

    def test_zero_scores_are_left_off(self):
        entries = rank_snapshots([_teacher(1, 0), _teacher(2, 3)], "sessions")
        assert [e.user_id for e in entries] == [2]

    def test_large_limit_is_capped(self):
        snapshots = [_teacher(i, i) for i in range(1, 151)]
        entries = rank_snapshots(snapshots, "sessions", limit=500)
        assert len(entries) == MAX_LIMIT
        assert entries[0].user_id == 150

    def test_non_positive_limit_uses_default(self):
        snapshots = [_teacher(i, i) for i in range(1, 31)]
        assert len(rank_snapshots(snapshots, "sessions", limit=0)) == DEFAULT_LIMIT

    def test_rating_dimension_uses_combined_average(self):
        snapshots = [
            StatSnapshot(user_id=1, average_rating_as_teacher=5.0, average_rating_as_student=4.0),
            StatSnapshot(user_id=2, average_rating_as_teacher=4.0, average_rating_as_student=4.0),
        ]
        entries = rank_snapshots(snapshots, "rating")
        assert [(e.user_id, e.score) for e in entries] == [(1, 4.5), (2, 4.0)]

    def test_badges_rarity_and_credits(self):
        snapshots = [
            StatSnapshot(user_id=1, badge_count=2, rarity_score=9, credits_earned=10.0),
            StatSnapshot(user_id=2, badge_count=5, rarity_score=5, credits_earned=40.5),
        ]
        assert rank_snapshots(snapshots, "badges")[0].user_id == 2
        assert rank_snapshots(snapshots, "rarity")[0].user_id == 1
        assert rank_snapshots(snapshots, "credits")[0].score == 40.5

    def test_unknown_dimension(self):
        with pytest.raises(ValidationError):
            rank_snapshots([_teacher(1, 1)], "hashrate")


class TestLeaderboardRanker:
    @pytest.mark.asyncio
    async def test_ranks_provider_batch(self):
        stats = FakeStats([_teacher(1, 2), _teacher(2, 6)])
        entries = await LeaderboardRanker(stats).rank("sessions", 10)
        assert [e.user_id for e in entries] == [2, 1]

    @pytest.mark.asyncio
    async def test_unknown_dimension_does_not_load_batch(self):
        stats = FakeStats([_teacher(1, 2)])
        with pytest.raises(ValidationError):
            await LeaderboardRanker(stats).rank("hashrate")
        assert stats.batch_calls == 0
