"""Pull refresh policy for the notification feed.

Every pull draws a number from a single increasing sequence, and so does every
change confirmed outside of pulls (push frames, confirmed actions). A response
is compared against that sequence when it arrives:

* a first-page response is dropped if a newer first-page pull was issued, and
  merged instead of replacing the list if the feed changed since it was issued;
* an unread count is applied only if nothing newer set the count or changed
  the feed in the meantime;
* a "load more" page is dropped if a first-page pull was issued after it.

Deletes and reads confirmed after a pull was issued are replayed onto its
response before it reaches the store.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Callable, Protocol

from feedsync.application.store import (
    AppendNotifications,
    MarkAllRead,
    MarkAsRead,
    MergeNotifications,
    NotificationStore,
    RemoveNotification,
    SetError,
    SetLoading,
    SetNotifications,
    SetUnreadCount,
)
from feedsync.domain.entities import Notification
from feedsync.domain.errors import NotificationApiError
from feedsync.interfaces.schemas import NotificationPageRead

logger = logging.getLogger(__name__)


class NotificationSource(Protocol):
    """Pull side of the notifications API."""

    async def list_notifications(
        self, *, page: int = 1, limit: int = 20
    ) -> NotificationPageRead: ...

    async def get_unread_count(self) -> int: ...


class RefreshCoordinator:
    """Decide when to pull fresh state and reconcile it with the store."""

    def __init__(
        self,
        store: NotificationStore,
        source: NotificationSource,
        *,
        page_size: int = 20,
        poll_interval: float = 30.0,
        min_refresh_spacing: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._source = source
        self._page_size = page_size
        self._poll_interval = poll_interval
        self._min_refresh_spacing = min_refresh_spacing
        self._clock = clock

        self._sequence = 0
        self._latest_list_seq = 0
        self._latest_count_seq = 0
        self._applied_count_seq = 0
        self._last_change_seq = 0
        self._removed: dict[str, int] = {}
        self._read: dict[str, int] = {}
        self._all_read_seq = 0
        self._pending_pulls: set[int] = set()

        self._page = 1
        self._has_more = True
        self._last_updated: float | None = None
        self._visible = True
        self._poll_task: asyncio.Task[None] | None = None
        self._load_more_task: asyncio.Task[bool] | None = None

    @property
    def page(self) -> int:
        return self._page

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def last_updated(self) -> float | None:
        return self._last_updated

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def on_mount(self) -> None:
        """Pull the first page and the unread count, then start polling."""

        await asyncio.gather(self.refresh(), self.refresh_unread_count())
        self.start_polling()

    async def on_visibility_change(self, visible: bool) -> bool:
        """Reconcile the unread count when the view becomes visible again."""

        was_hidden = not self._visible
        self._visible = visible
        if visible and was_hidden:
            return await self.refresh_unread_count()
        return False

    async def on_focus(self) -> bool:
        if self._recently_updated():
            logger.debug("Skipping focus refresh; feed updated recently")
            return False
        return await self.refresh_unread_count()

    async def on_tick(self) -> bool:
        if self._recently_updated():
            logger.debug("Skipping periodic refresh; feed updated recently")
            return False
        return await self.refresh_unread_count()

    def note_change(self, action: object | None = None) -> None:
        """Record a push-confirmed or action-confirmed change to the feed."""

        seq = self._next_seq()
        self._last_change_seq = seq
        self._last_updated = self._clock()
        if isinstance(action, RemoveNotification):
            self._removed[action.notification_id] = seq
        elif isinstance(action, MarkAsRead):
            self._read[action.notification_id] = seq
        elif isinstance(action, MarkAllRead):
            self._all_read_seq = seq

    async def refresh(self) -> bool:
        """Pull the first page and replace or merge it into the store."""

        seq = self._next_seq()
        self._latest_list_seq = seq
        if not self._store.get_state().notifications:
            self._store.dispatch(SetLoading(True))

        self._pending_pulls.add(seq)
        try:
            return await self._refresh(seq)
        finally:
            self._finish_pull(seq)

    async def _refresh(self, seq: int) -> bool:
        try:
            page = await self._source.list_notifications(page=1, limit=self._page_size)
        except NotificationApiError as exc:
            if seq == self._latest_list_seq:
                self._handle_list_failure(exc)
            return False

        if seq < self._latest_list_seq:
            logger.info("Discarding superseded notifications pull #%s", seq)
            return False

        entities = self._reconcile(page.entities(), since=seq)
        if self._last_change_seq > seq:
            logger.info("Merging notifications pull #%s issued before newer changes", seq)
            self._store.dispatch(MergeNotifications(entities))
            self._store.dispatch(SetLoading(False))
        else:
            self._store.dispatch(SetNotifications(entities))
            self._apply_count(seq, page.unread_count)

        self._page = 1
        self._has_more = self._more_after(page, 1)
        if self._store.get_state().error is not None:
            self._store.dispatch(SetError(None))
        self._last_updated = self._clock()
        return True

    async def refresh_unread_count(self) -> bool:
        seq = self._next_seq()
        self._latest_count_seq = seq
        try:
            count = await self._source.get_unread_count()
        except NotificationApiError as exc:
            logger.warning("Failed to fetch unread count: %s", exc)
            return False

        if seq < self._latest_count_seq:
            logger.debug("Discarding superseded unread count pull #%s", seq)
            return False
        applied = self._apply_count(seq, count)
        if applied:
            self._last_updated = self._clock()
        return applied

    async def load_more(self) -> bool:
        """Append the next page; concurrent calls share one request."""

        if self._load_more_task is not None:
            return await self._load_more_task
        if not self._has_more:
            return False

        self._load_more_task = asyncio.ensure_future(self._load_next_page())
        try:
            return await self._load_more_task
        finally:
            self._load_more_task = None

    def start_polling(self) -> None:
        if self.polling:
            return
        self._poll_task = asyncio.get_running_loop().create_task(self._poll())

    async def stop(self) -> None:
        """Cancel periodic polling and any outstanding page load."""

        tasks = [task for task in (self._poll_task, self._load_more_task) if task is not None]
        self._poll_task = None
        self._load_more_task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            try:
                await self.on_tick()
            except Exception:  # pragma: no cover - keep the timer alive
                logger.exception("Periodic notification refresh failed")

    async def _load_next_page(self) -> bool:
        seq = self._next_seq()
        self._pending_pulls.add(seq)
        try:
            return await self._append_next_page(seq)
        finally:
            self._finish_pull(seq)

    async def _append_next_page(self, seq: int) -> bool:
        next_page = self._page + 1
        try:
            page = await self._source.list_notifications(page=next_page, limit=self._page_size)
        except NotificationApiError as exc:
            logger.warning("Failed to load notifications page %s: %s", next_page, exc)
            return False

        if self._latest_list_seq > seq:
            logger.info("Discarding page %s pulled before a newer refresh", next_page)
            return False

        self._store.dispatch(
            AppendNotifications(self._reconcile(page.entities(), since=seq))
        )
        self._page = next_page
        self._has_more = self._more_after(page, next_page)
        self._last_updated = self._clock()
        return True

    def _apply_count(self, seq: int, count: int) -> bool:
        if seq <= self._applied_count_seq or self._last_change_seq > seq:
            logger.debug("Ignoring unread count from stale pull #%s", seq)
            return False
        self._applied_count_seq = seq
        self._store.dispatch(SetUnreadCount(count))
        return True

    def _handle_list_failure(self, exc: NotificationApiError) -> None:
        if self._store.get_state().notifications:
            logger.warning("Background notifications refresh failed: %s", exc)
            self._store.dispatch(SetLoading(False))
        else:
            logger.warning("Failed to fetch notifications: %s", exc)
            self._store.dispatch(SetError(exc.message))

    def _more_after(self, page: NotificationPageRead, page_number: int) -> bool:
        if page.pagination is not None:
            return page_number < page.pagination.pages
        return len(page.notifications) >= self._page_size

    def _reconcile(
        self, notifications: tuple[Notification, ...], *, since: int
    ) -> tuple[Notification, ...]:
        """Replay deletes and reads confirmed after pull ``since`` was issued."""

        removed = {nid for nid, seq in self._removed.items() if seq > since}
        read = {nid for nid, seq in self._read.items() if seq > since}
        all_read = self._all_read_seq > since
        if not (removed or read or all_read):
            return notifications
        return tuple(
            replace(n, read=True)
            if not n.read and (all_read or n.id in read)
            else n
            for n in notifications
            if n.id not in removed
        )

    def _finish_pull(self, seq: int) -> None:
        # Changes only matter to pulls issued before them.
        self._pending_pulls.discard(seq)
        if not self._pending_pulls:
            self._removed.clear()
            self._read.clear()
            return
        oldest = min(self._pending_pulls)
        self._removed = {nid: s for nid, s in self._removed.items() if s > oldest}
        self._read = {nid: s for nid, s in self._read.items() if s > oldest}

    def _recently_updated(self) -> bool:
        if self._last_updated is None:
            return False
        return self._clock() - self._last_updated < self._min_refresh_spacing

    def _next_seq(self) -> int:
        self._sequence += 1
        return self._sequence


__all__ = ["NotificationSource", "RefreshCoordinator"]
