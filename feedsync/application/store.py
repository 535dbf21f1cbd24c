"""Single-writer state container for the notification feed.

Every mutation of the feed is a named action applied by :func:`reduce`, a pure
function that is total over all prior states. :class:`NotificationStore` holds
the current snapshot, applies actions through ``dispatch`` and notifies
subscribers, which lets several views observe one session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Union

from feedsync.domain.entities import Notification, NotificationState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetNotifications:
    """Replace the loaded list after a full pull."""

    notifications: tuple[Notification, ...]


@dataclass(frozen=True)
class AppendNotifications:
    """Append a pulled page at the tail, skipping ids already loaded."""

    notifications: tuple[Notification, ...]


@dataclass(frozen=True)
class MergeNotifications:
    """Union a pulled list with the loaded one, keeping loaded entries."""

    notifications: tuple[Notification, ...]


@dataclass(frozen=True)
class AddNotification:
    notification: Notification


@dataclass(frozen=True)
class MarkAsRead:
    notification_id: str


@dataclass(frozen=True)
class MarkAllRead:
    pass


@dataclass(frozen=True)
class RemoveNotification:
    notification_id: str


@dataclass(frozen=True)
class SetUnreadCount:
    count: int


@dataclass(frozen=True)
class SetLoading:
    loading: bool


@dataclass(frozen=True)
class SetError:
    message: str | None


Action = Union[
    SetNotifications,
    AppendNotifications,
    MergeNotifications,
    AddNotification,
    MarkAsRead,
    MarkAllRead,
    RemoveNotification,
    SetUnreadCount,
    SetLoading,
    SetError,
]

Listener = Callable[[NotificationState], None]


def reduce(state: NotificationState, action: object) -> NotificationState:
    """Return the state that results from applying ``action`` to ``state``."""

    if isinstance(action, SetNotifications):
        return replace(
            state, notifications=_unique(action.notifications), loading=False
        )

    if isinstance(action, AppendNotifications):
        known = set(state.ids)
        additions = [n for n in _unique(action.notifications) if n.id not in known]
        if not additions:
            return state
        return replace(state, notifications=state.notifications + tuple(additions))

    if isinstance(action, MergeNotifications):
        known = set(state.ids)
        additions = [n for n in _unique(action.notifications) if n.id not in known]
        if not additions:
            return state
        merged = sorted(
            state.notifications + tuple(additions),
            key=lambda n: n.created_at,
            reverse=True,
        )
        return replace(state, notifications=tuple(merged))

    if isinstance(action, AddNotification):
        notification = action.notification
        if state.find(notification.id) is not None:
            return state
        unread_count = state.unread_count + (0 if notification.read else 1)
        return replace(
            state,
            notifications=(notification,) + state.notifications,
            unread_count=unread_count,
        )

    if isinstance(action, MarkAsRead):
        current = state.find(action.notification_id)
        if current is None or current.read:
            return state
        return replace(
            state,
            notifications=tuple(
                replace(n, read=True) if n.id == action.notification_id else n
                for n in state.notifications
            ),
            unread_count=max(state.unread_count - 1, 0),
        )

    if isinstance(action, MarkAllRead):
        return replace(
            state,
            notifications=tuple(
                n if n.read else replace(n, read=True) for n in state.notifications
            ),
            unread_count=0,
        )

    if isinstance(action, RemoveNotification):
        if state.find(action.notification_id) is None:
            return state
        return replace(
            state,
            notifications=tuple(
                n for n in state.notifications if n.id != action.notification_id
            ),
        )

    if isinstance(action, SetUnreadCount):
        return replace(state, unread_count=max(int(action.count), 0))

    if isinstance(action, SetLoading):
        return replace(state, loading=bool(action.loading))

    if isinstance(action, SetError):
        return replace(state, error=action.message, loading=False)

    logger.warning("Ignoring unknown store action %r", action)
    return state


def _unique(notifications: Iterable[Notification]) -> tuple[Notification, ...]:
    seen: set[str] = set()
    unique: list[Notification] = []
    for notification in notifications:
        if notification.id in seen:
            continue
        seen.add(notification.id)
        unique.append(notification)
    return tuple(unique)


class NotificationStore:
    """Hold the feed state and broadcast every change to subscribers."""

    def __init__(self, initial_state: NotificationState | None = None) -> None:
        self._state = initial_state or NotificationState()
        self._listeners: list[Listener] = []

    def get_state(self) -> NotificationState:
        return self._state

    def dispatch(self, action: Action) -> NotificationState:
        """Apply ``action`` and notify subscribers when the state changed."""

        previous = self._state
        self._state = reduce(previous, action)
        if self._state != previous:
            self._notify()
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Notification store subscriber failed")


__all__ = [
    "Action",
    "AddNotification",
    "AppendNotifications",
    "MarkAllRead",
    "MarkAsRead",
    "MergeNotifications",
    "NotificationStore",
    "RemoveNotification",
    "SetError",
    "SetLoading",
    "SetNotifications",
    "SetUnreadCount",
    "reduce",
]
