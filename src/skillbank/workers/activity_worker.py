"""Activity consumer: session and progress events from Redis Streams.

Producers (the session and booking services) publish to:

- ``activity:session_completed``: ``{"user_ids": [...]}`` or ``{"user_id": ...}``.
  Every participant gets a badge evaluation.
- ``activity:progress_updated``: ``{"user_id", "skill_id",
  "sessions_completed", "hours_spent"}``. Progress is recomputed, then badges
  are evaluated for the user.

Messages that fail with a client-side error (unknown user, bad counters)
are acknowledged and dropped. Anything else stays in this consumer's
pending list and is re-read on startup and every
``activity_pending_retry_s`` seconds.

Run with ``python -m skillbank.workers.activity_runner``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

import redis.asyncio as aioredis

from skillbank.config import get_settings
from skillbank.database import close_db, init_db, session_scope
from skillbank.errors import InternalError, SkillBankError, ValidationError
from skillbank.service import GamificationService

logger = logging.getLogger(__name__)

CONSUMER_GROUP = "gamification-consumers"

STREAM_SESSION_COMPLETED = "activity:session_completed"
STREAM_PROGRESS_UPDATED = "activity:progress_updated"

STREAMS = [
    STREAM_SESSION_COMPLETED,
    STREAM_PROGRESS_UPDATED,
]

ServiceScope = Callable[[], AbstractAsyncContextManager[GamificationService]]


def decode_event(raw_data: dict[str, Any]) -> dict[str, Any]:
    """Stream entries carry a JSON ``data`` field; fall back to the flat fields."""
    data_str = raw_data.get("data")
    if isinstance(data_str, str):
        try:
            data = json.loads(data_str)
        except json.JSONDecodeError:
            return dict(raw_data)
        if isinstance(data, dict):
            return data
    return dict(raw_data)


def _int_field(data: dict[str, Any], name: str) -> int:
    try:
        return int(data[name])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"Event field {name!r} is missing or not an integer") from exc


def _float_field(data: dict[str, Any], name: str) -> float:
    try:
        return float(data[name])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"Event field {name!r} is missing or not a number") from exc


async def handle_activity_event(
    service: GamificationService, stream: str, data: dict[str, Any],
) -> list[str]:
    """Apply one event. Returns the names of badges awarded while handling it."""
    if stream == STREAM_SESSION_COMPLETED:
        if "user_ids" in data:
            raw_ids = data["user_ids"]
            if isinstance(raw_ids, str):
                try:
                    raw_ids = json.loads(raw_ids)
                except json.JSONDecodeError as exc:
                    raise ValidationError("Event field 'user_ids' is not a JSON list") from exc
            if not isinstance(raw_ids, list):
                raise ValidationError("Event field 'user_ids' must be a list")
            user_ids = [_int_field({"user_id": u}, "user_id") for u in raw_ids]
        else:
            user_ids = [_int_field(data, "user_id")]
    elif stream == STREAM_PROGRESS_UPDATED:
        user_id = _int_field(data, "user_id")
        await service.update_progress(
            user_id,
            _int_field(data, "skill_id"),
            _int_field(data, "sessions_completed"),
            _float_field(data, "hours_spent"),
        )
        user_ids = [user_id]
    else:
        logger.warning("Ignoring event from unknown stream %s", stream)
        return []

    awarded: list[str] = []
    for user_id in user_ids:
        awards = await service.check_and_award_badges(user_id)
        awarded.extend(a.badge.name for a in awards)
    return awarded


def service_scope(pubsub: aioredis.Redis | None) -> ServiceScope:
    """Factory opening a fresh session and facade per message."""

    @asynccontextmanager
    async def open_service() -> AsyncGenerator[GamificationService, None]:
        async with session_scope() as db:
            yield GamificationService(db, pubsub)

    return open_service


async def process_messages(
    redis_client: aioredis.Redis,
    stream: str,
    messages: list[tuple[str, dict[str, Any] | None]],
    open_service: ServiceScope,
) -> int:
    """Handle a batch from one stream. Returns how many entries were acknowledged."""
    acked = 0
    for msg_id, raw_data in messages:
        if not raw_data:
            # Trimmed from the stream while pending; nothing left to apply
            await redis_client.xack(stream, CONSUMER_GROUP, msg_id)
            acked += 1
            continue

        try:
            async with open_service() as service:
                awarded = await handle_activity_event(service, stream, decode_event(raw_data))
            if awarded:
                logger.info("Awarded badges: %s (stream=%s, event=%s)", awarded, stream, msg_id)
        except InternalError:
            logger.exception("Failed to process %s from %s, leaving it pending", msg_id, stream)
            continue
        except SkillBankError as exc:
            logger.warning("Dropping %s from %s: %s", msg_id, stream, exc.message)
        except Exception:
            logger.exception("Failed to process %s from %s, leaving it pending", msg_id, stream)
            continue

        await redis_client.xack(stream, CONSUMER_GROUP, msg_id)
        acked += 1
    return acked


async def retry_pending(
    redis_client: aioredis.Redis,
    consumer_name: str,
    open_service: ServiceScope,
    count: int = 100,
) -> int:
    """Re-run entries delivered to this consumer but never acknowledged.

    Pages through each stream's pending list from the start. Returns the
    number of entries attempted.
    """
    attempted = 0
    for stream in STREAMS:
        last_id = "0"
        while True:
            events = await redis_client.xreadgroup(
                groupname=CONSUMER_GROUP,
                consumername=consumer_name,
                streams={stream: last_id},
                count=count,
            )
            messages = events[0][1] if events else []
            if not messages:
                break
            attempted += len(messages)
            await process_messages(redis_client, stream, messages, open_service)
            last_id = messages[-1][0]

    if attempted:
        logger.info("Retried %d pending activity events", attempted)
    return attempted


async def activity_startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Initialize Redis + DB connections and the consumer groups."""
    settings = get_settings()
    await init_db(settings.database_url)

    redis_client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )

    for stream in STREAMS:
        try:
            await redis_client.xgroup_create(stream, CONSUMER_GROUP, id="0", mkstream=True)
            logger.info("Created consumer group %s for %s", CONSUMER_GROUP, stream)
        except aioredis.ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise

    ctx["redis"] = redis_client
    logger.info("Activity worker started")


async def activity_shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    redis_client: aioredis.Redis | None = ctx.get("redis")
    if redis_client:
        await redis_client.aclose()
    await close_db()
    logger.info("Activity worker shut down")


async def consume_activity_events(ctx: dict) -> None:  # type: ignore[type-arg]
    """Main consumer loop: reads activity events and drives the gamification service.

    Runs until ``ctx["stop"]`` is set.
    """
    settings = get_settings()
    redis_client: aioredis.Redis = ctx["redis"]
    stop: asyncio.Event = ctx.setdefault("stop", asyncio.Event())
    pubsub = redis_client if settings.notification_pubsub_enabled else None
    open_service = service_scope(pubsub)
    streams = {s: ">" for s in STREAMS}

    loop = asyncio.get_running_loop()
    next_retry = loop.time()

    while not stop.is_set():
        if loop.time() >= next_retry:
            try:
                await retry_pending(
                    redis_client,
                    settings.activity_consumer_name,
                    open_service,
                    settings.activity_batch_size,
                )
            except aioredis.ResponseError as e:
                logger.error("Pending re-read error: %s", e)
            next_retry = loop.time() + settings.activity_pending_retry_s

        try:
            events = await redis_client.xreadgroup(
                groupname=CONSUMER_GROUP,
                consumername=settings.activity_consumer_name,
                streams=streams,
                count=settings.activity_batch_size,
                block=settings.activity_block_ms,
            )
        except aioredis.ResponseError as e:
            logger.error("XREADGROUP error: %s", e)
            await asyncio.sleep(1)
            continue

        for stream_name, messages in events or []:
            stream_str = stream_name if isinstance(stream_name, str) else stream_name.decode()
            await process_messages(redis_client, stream_str, messages, open_service)
