"""Composition root tying the feed store to push and pull synchronization."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from feedsync.application.store import (
    AddNotification,
    NotificationStore,
    SetUnreadCount,
)
from feedsync.application.use_cases.notifications import (
    ActionDispatcher,
    ActionOutcome,
    RefreshCoordinator,
)
from feedsync.config import Settings
from feedsync.domain.entities import NotificationState
from feedsync.domain.errors import MissingCredentialError
from feedsync.infrastructure import NotificationApiClient
from feedsync.infrastructure.notifications import (
    Connector,
    PushFrame,
    ReconnectionSupervisor,
    Scheduler,
    TransportChannel,
)
from feedsync.interfaces.schemas import NotificationFrame, UnreadCountFrame

logger = logging.getLogger(__name__)


class NotificationSession:
    """Own the synchronization engine for one signed-in user.

    ``start`` corresponds to mounting the feed once a credential is available
    and ``stop`` to unmounting or logging out. Views read the feed through
    :attr:`store` and act on it through the action methods.
    """

    def __init__(
        self,
        settings: Settings,
        credential: str | None,
        *,
        api_client: NotificationApiClient | None = None,
        connector: Connector | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not credential:
            raise MissingCredentialError()

        self._settings = settings
        self._credential = credential
        self._owns_client = api_client is None
        self._api = api_client or NotificationApiClient(
            settings.api_url,
            credential,
            timeout=settings.request_timeout_seconds,
        )
        self.store = NotificationStore()
        self.coordinator = RefreshCoordinator(
            self.store,
            self._api,
            page_size=settings.page_size,
            poll_interval=settings.poll_interval_seconds,
            min_refresh_spacing=settings.min_refresh_spacing_seconds,
            clock=clock,
        )
        self.actions = ActionDispatcher(
            self.store, self._api, on_confirmed=self.coordinator.note_change
        )
        ws_url = settings.ws_url or ""
        self.supervisor = ReconnectionSupervisor(
            lambda: TransportChannel(ws_url, connector=connector),
            self._apply_push,
            reconnect_delay=settings.reconnect_delay_seconds,
            scheduler=scheduler,
        )
        self._started = False

    async def __aenter__(self) -> "NotificationSession":
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.stop()

    @property
    def state(self) -> NotificationState:
        return self.store.get_state()

    def subscribe(self, listener: Callable[[NotificationState], None]) -> Callable[[], None]:
        return self.store.subscribe(listener)

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.supervisor.supervise(self._credential)
        await self.coordinator.on_mount()

    async def stop(self) -> None:
        await self.supervisor.stop()
        await self.coordinator.stop()
        if self._owns_client:
            await self._api.aclose()

    async def on_visibility_change(self, visible: bool) -> bool:
        return await self.coordinator.on_visibility_change(visible)

    async def on_focus(self) -> bool:
        return await self.coordinator.on_focus()

    async def refresh(self) -> bool:
        return await self.coordinator.refresh()

    async def load_more(self) -> bool:
        return await self.coordinator.load_more()

    async def mark_as_read(self, notification_id: str) -> ActionOutcome:
        return await self.actions.mark_as_read(notification_id)

    async def mark_all_read(self) -> ActionOutcome:
        return await self.actions.mark_all_read()

    async def delete(self, notification_id: str) -> ActionOutcome:
        return await self.actions.delete(notification_id)

    async def register_device(self, token: str, platform: str) -> ActionOutcome:
        return await self.actions.register_device(token, platform)

    def _apply_push(self, frame: PushFrame) -> None:
        if isinstance(frame, NotificationFrame):
            action = AddNotification(frame.notification.to_entity())
        elif isinstance(frame, UnreadCountFrame):
            action = SetUnreadCount(frame.count)
        else:  # pragma: no cover - the frame codec only yields the two types
            logger.warning("Ignoring unsupported push frame %r", frame)
            return
        self.store.dispatch(action)
        self.coordinator.note_change(action)


__all__ = ["NotificationSession"]
