"""User-initiated notification actions confirmed by the server."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

from feedsync.application.store import (
    Action,
    MarkAllRead,
    MarkAsRead,
    NotificationStore,
    RemoveNotification,
)
from feedsync.domain.errors import NotificationApiError

logger = logging.getLogger(__name__)

_ALL_KEY = "*"


class NotificationCommands(Protocol):
    """Write side of the notifications API."""

    async def mark_as_read(self, notification_id: str) -> None: ...

    async def mark_all_read(self) -> None: ...

    async def delete_notification(self, notification_id: str) -> None: ...

    async def register_device(self, token: str, platform: str) -> Any: ...


@dataclass(frozen=True)
class ActionOutcome:
    """Result of an action; ``error`` is set when the server did not confirm."""

    ok: bool
    error: str | None = None
    payload: Any = None

    @classmethod
    def success(cls, payload: Any = None) -> "ActionOutcome":
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, error: str) -> "ActionOutcome":
        return cls(ok=False, error=error)


class ActionDispatcher:
    """Perform an authoritative call, then apply the matching store transition.

    The store is only touched after the server confirmed the request, so no
    rollback is ever needed. A second action for the same notification (or a
    second mark-all-read) while the first is in flight is rejected.
    """

    def __init__(
        self,
        store: NotificationStore,
        commands: NotificationCommands,
        *,
        on_confirmed: Callable[[Action], None] | None = None,
    ) -> None:
        self._store = store
        self._commands = commands
        self._on_confirmed = on_confirmed
        self._in_flight: set[str] = set()

    def is_pending(self, notification_id: str | None = None) -> bool:
        return (notification_id or _ALL_KEY) in self._in_flight

    async def mark_as_read(self, notification_id: str) -> ActionOutcome:
        return await self._perform(
            notification_id,
            lambda: self._commands.mark_as_read(notification_id),
            MarkAsRead(notification_id),
            "mark notification as read",
        )

    async def mark_all_read(self) -> ActionOutcome:
        return await self._perform(
            _ALL_KEY,
            self._commands.mark_all_read,
            MarkAllRead(),
            "mark all notifications as read",
        )

    async def delete(self, notification_id: str) -> ActionOutcome:
        return await self._perform(
            notification_id,
            lambda: self._commands.delete_notification(notification_id),
            RemoveNotification(notification_id),
            "delete notification",
        )

    async def register_device(self, token: str, platform: str) -> ActionOutcome:
        """Forward a device token for out-of-band push; never touches the feed."""

        try:
            payload = await self._commands.register_device(token, platform)
        except (NotificationApiError, ValueError) as exc:
            logger.warning("Failed to register device token for %s: %s", platform, exc)
            return ActionOutcome.failure(str(exc))
        return ActionOutcome.success(payload)

    async def _perform(
        self,
        key: str,
        call: Callable[[], Awaitable[Any]],
        action: Action,
        description: str,
    ) -> ActionOutcome:
        if not key:
            return ActionOutcome.failure("A notification id is required")
        if key in self._in_flight:
            logger.info("Rejecting %s for %s; a request is already in flight", description, key)
            return ActionOutcome.failure(f"Cannot {description} while a previous request is pending")

        self._in_flight.add(key)
        try:
            await call()
        except NotificationApiError as exc:
            logger.warning("Failed to %s: %s", description, exc)
            return ActionOutcome.failure(exc.message)
        finally:
            self._in_flight.discard(key)

        self._store.dispatch(action)
        if self._on_confirmed is not None:
            self._on_confirmed(action)
        return ActionOutcome.success()


__all__ = ["ActionDispatcher", "ActionOutcome", "NotificationCommands"]
