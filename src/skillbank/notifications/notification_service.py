"""Notification creation and delivery service.

Notifications are:
1. Persisted in the database, inside the caller's transaction
2. Pushed to the user via Redis pub/sub (``ws:user:{user_id}``) once that
   transaction has committed

Kinds emitted by the gamification core: badge_earned, milestone_achieved
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from skillbank.db.models import Notification
from skillbank.ports import NotificationSink

logger = logging.getLogger(__name__)

NOTIFICATION_TYPE = "achievement"


def render_notification(kind: str, payload: dict[str, Any]) -> tuple[str, str]:
    """Title and message for a notification kind."""
    if kind == "badge_earned":
        title = f'Badge Earned: "{payload.get("badge_name", "")}"'
        bonus = payload.get("bonus_credits", 0)
        message = f"+{bonus} credits" if bonus else "New badge on your profile"
        return title, message
    if kind == "milestone_achieved":
        return (
            "Milestone Achieved!",
            f"You've achieved the '{payload.get('title', '')}' milestone",
        )
    return kind.replace("_", " ").capitalize(), ""


def build_ws_payload(notification: Notification) -> dict[str, Any]:
    """Websocket envelope for a flushed notification (it must have an ``id``)."""
    return {
        "event": "notification",
        "data": {
            "id": str(notification.id),
            "type": notification.type,
            "subtype": notification.subtype,
            "title": notification.title,
            "message": notification.message,
            "metadata": notification.notification_metadata,
            "timestamp": (
                notification.created_at.isoformat()
                if notification.created_at
                else None
            ),
            "read": False,
        },
    }


async def push_notification_to_user(redis: object | None, user_id: int, ws_payload: dict[str, Any]) -> None:
    """Publish a websocket envelope to ws:user:{user_id}.

    Delivery failures are logged and swallowed; the row is the record.
    """
    if redis is None:
        return

    try:
        await redis.publish(  # type: ignore[union-attr]
            f"ws:user:{user_id}",
            json.dumps(ws_payload, default=str),
        )
    except Exception:
        logger.warning(
            "Failed to push notification via ws:user:%s",
            user_id,
            exc_info=True,
        )


class DatabaseNotificationSink(NotificationSink):
    """Persists each notification and fans it out over Redis when available.

    Pub/sub messages are held back until whoever owns the transaction calls
    ``publish_pending`` after commit, or ``discard_pending`` after rollback.
    """

    def __init__(self, db: AsyncSession, redis: object | None = None) -> None:
        self.db = db
        self.redis = redis
        self.pending: list[tuple[int, dict[str, Any]]] = []

    async def notify(self, user_id: int, kind: str, payload: dict[str, Any]) -> None:
        title, message = render_notification(kind, payload)
        notification = Notification(
            user_id=user_id,
            type=NOTIFICATION_TYPE,
            subtype=kind,
            title=title,
            message=message,
            notification_metadata=payload,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(notification)
        await self.db.flush()

        if self.redis is not None:
            self.pending.append((user_id, build_ws_payload(notification)))

    async def publish_pending(self) -> int:
        """Publish everything queued since the last commit. Returns the count."""
        pending, self.pending = self.pending, []
        for user_id, ws_payload in pending:
            await push_notification_to_user(self.redis, user_id, ws_payload)
        return len(pending)

    def discard_pending(self) -> None:
        if self.pending:
            logger.info("Dropping %d unpublished notifications after rollback", len(self.pending))
        self.pending = []
