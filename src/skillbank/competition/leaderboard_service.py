"""Leaderboard ranking over a batch of user stat snapshots.

Scores are computed per request from the provider's batch; nothing is
persisted. The batch may be slightly stale relative to concurrent writes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

import structlog

from skillbank.domain import LeaderboardEntry, StatSnapshot
from skillbank.errors import ValidationError
from skillbank.ports import StatsProvider

logger = structlog.get_logger()

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

ScoreFunc = Callable[[StatSnapshot], float]

DIMENSIONS: dict[str, ScoreFunc] = {
    "badges": lambda s: s.badge_count,
    "rarity": lambda s: s.rarity_score,
    "sessions": lambda s: s.total_sessions,
    "rating": lambda s: round(s.average_rating, 2),
    "credits": lambda s: s.credits_earned,
}


def clamp_limit(limit: int | None) -> int:
    """Non-positive or missing limits fall back to the default; large ones are capped."""
    if limit is None or limit <= 0:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


def get_score_func(dimension: str) -> ScoreFunc:
    try:
        return DIMENSIONS[dimension]
    except KeyError:
        raise ValidationError(
            f"Unknown leaderboard dimension: {dimension}. Must be one of {sorted(DIMENSIONS)}"
        ) from None


def rank_snapshots(
    snapshots: Iterable[StatSnapshot],
    dimension: str,
    limit: int | None = DEFAULT_LIMIT,
) -> list[LeaderboardEntry]:
    """Rank users by one dimension, highest first.

    Users with a zero score are left off the board. ``sorted`` is stable,
    including with ``reverse=True``, so equal scores keep input order.
    """
    score_of = get_score_func(dimension)
    limit = clamp_limit(limit)

    scored: list[tuple[int, float]] = []
    for snapshot in snapshots:
        score = score_of(snapshot)
        if not score or score <= 0:
            continue
        scored.append((snapshot.user_id, score))

    ranked = sorted(scored, key=lambda item: item[1], reverse=True)[:limit]

    return [
        LeaderboardEntry(rank=idx + 1, user_id=user_id, score=score, dimension=dimension)
        for idx, (user_id, score) in enumerate(ranked)
    ]


class LeaderboardRanker:
    """Produces capped rankings from the stats provider's batch view."""

    def __init__(self, stats: StatsProvider) -> None:
        self.stats = stats

    async def rank(self, dimension: str, limit: int | None = DEFAULT_LIMIT) -> list[LeaderboardEntry]:
        # Reject unknown dimensions before loading the batch
        get_score_func(dimension)
        snapshots = await self.stats.list_all_user_stats()
        entries = rank_snapshots(snapshots, dimension, limit)
        logger.debug(
            "leaderboard_ranked",
            dimension=dimension,
            candidates=len(snapshots),
            returned=len(entries),
        )
        return entries
