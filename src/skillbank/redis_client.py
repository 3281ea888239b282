"""Redis connection pool.

Redis only carries best-effort traffic here (notification fan-out and the
activity streams), so request code asks for an optional client.
"""

import redis.asyncio as redis

_pool: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 50) -> None:
    """Initialize the Redis connection pool."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_optional_redis() -> redis.Redis | None:
    """Redis client for best-effort pub/sub, or None when not initialized."""
    return _pool


async def redis_status() -> str:
    """``ok``, ``not initialized`` or ``error: ...`` for readiness reporting."""
    if _pool is None:
        return "not initialized"
    try:
        await _pool.ping()
    except redis.RedisError as exc:
        return f"error: {exc}"
    return "ok"
