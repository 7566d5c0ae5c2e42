"""Notification Inbox — per-user reading, marking and retention of notifications.

Invariants:
    - Lists are newest first
    - mark_all_as_read() and prune_older_than() write at most once and return counts
"""

import logging
from datetime import datetime, timedelta

from certtrack.core.clock import as_utc
from certtrack.core.domain_types import CollectionName, NotificationType
from certtrack.core.errors import NotFoundError
from certtrack.models.notification import Notification
from certtrack.services.collection_io import CollectionService

logger = logging.getLogger(__name__)


class NotificationInbox(CollectionService):
    """User-facing operations over the notifications collection."""

    async def list_for_user(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        notifications = await self._load(CollectionName.NOTIFICATIONS, Notification)
        return sorted(
            (n for n in notifications if n.user_id == user_id and not (unread_only and n.is_read)),
            key=lambda n: as_utc(n.created_at), reverse=True,
        )

    async def get(self, notification_id: str) -> Notification:
        notifications = await self._load(CollectionName.NOTIFICATIONS, Notification)
        notification = notifications.get(notification_id)
        if notification is None:
            raise NotFoundError("Notification", notification_id)
        return notification

    async def mark_as_read(self, notification_id: str) -> Notification:
        notifications = await self._load(CollectionName.NOTIFICATIONS, Notification)
        notification = notifications.get(notification_id)
        if notification is None:
            raise NotFoundError("Notification", notification_id)
        if notification.is_read:
            return notification
        notification = notifications.put(notification.model_copy(update={"is_read": True}))
        await self._persist(notifications, f"Mark notification {notification_id} as read")
        return notification

    async def mark_all_as_read(self, user_id: str) -> int:
        notifications = await self._load(CollectionName.NOTIFICATIONS, Notification)
        unread = [n for n in notifications if n.user_id == user_id and not n.is_read]
        for n in unread:
            notifications.put(n.model_copy(update={"is_read": True}))
        if unread:
            await self._persist(notifications, f"Mark {len(unread)} notifications as read")
        return len(unread)

    async def delete(self, notification_id: str) -> None:
        notifications = await self._load(CollectionName.NOTIFICATIONS, Notification)
        if notifications.remove(notification_id) is None:
            raise NotFoundError("Notification", notification_id)
        await self._persist(notifications, f"Delete notification {notification_id}")

    async def prune_older_than(self, days: int, now: datetime | None = None) -> int:
        """Retention sweep across all users. Returns how many were removed."""
        cutoff = as_utc(now or self.clock()) - timedelta(days=days)
        notifications = await self._load(CollectionName.NOTIFICATIONS, Notification)
        keep = [n for n in notifications if as_utc(n.created_at) >= cutoff]
        removed = len(notifications) - len(keep)
        if removed:
            notifications.replace_all(keep)
            await self._persist(notifications, f"Prune {removed} notifications older than {days} days")
        logger.info(f"Pruned {removed} notifications", extra={"count": removed})
        return removed

    async def stats(self, user_id: str) -> dict:
        own = await self.list_for_user(user_id)
        by_type = {
            kind.value: {"total": 0, "unread": 0} for kind in NotificationType
        }
        for n in own:
            by_type[n.type.value]["total"] += 1
            if not n.is_read:
                by_type[n.type.value]["unread"] += 1
        return {
            "total": len(own),
            "unread": sum(1 for n in own if not n.is_read),
            "byType": by_type,
        }
