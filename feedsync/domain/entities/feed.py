"""Snapshot of the notification feed held by the store."""

from __future__ import annotations

from dataclasses import dataclass

from .notification import Notification


@dataclass(frozen=True)
class NotificationState:
    """Immutable view of the feed at one point in time."""

    notifications: tuple[Notification, ...] = ()
    unread_count: int = 0
    loading: bool = True
    error: str | None = None

    def find(self, notification_id: str) -> Notification | None:
        for notification in self.notifications:
            if notification.id == notification_id:
                return notification
        return None

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(notification.id for notification in self.notifications)


__all__ = ["NotificationState"]
