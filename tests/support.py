"""Test doubles shared by the synchronization engine tests."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any

from feedsync.domain.entities import Notification
from feedsync.interfaces.schemas import NotificationPageRead, NotificationRead

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

_END = object()


def notification_payload(
    notification_id: str,
    *,
    kind: str = "review_like",
    read: bool = False,
    minutes_ago: int = 0,
) -> dict[str, Any]:
    """Return a notification as the server serializes it."""

    return {
        "_id": notification_id,
        "type": kind,
        "sender": {"id": "u1", "displayName": "Ana", "profileImage": None},
        "target": {"type": "review", "id": "r1", "beefery": "Smoky Joe's"},
        "read": read,
        "date": (BASE_TIME - timedelta(minutes=minutes_ago)).isoformat(),
    }


def make_notification(notification_id: str, **kwargs: Any) -> Notification:
    return NotificationRead.model_validate(
        notification_payload(notification_id, **kwargs)
    ).to_entity()


def make_page(
    payloads: list[dict[str, Any]],
    *,
    unread_count: int | None = None,
    pages: int | None = None,
    page: int = 1,
) -> NotificationPageRead:
    body: dict[str, Any] = {
        "notifications": payloads,
        "unreadCount": (
            unread_count
            if unread_count is not None
            else sum(1 for item in payloads if not item["read"])
        ),
    }
    if pages is not None:
        body["pagination"] = {"total": len(payloads), "page": page, "pages": pages}
    return NotificationPageRead.model_validate(body)


async def settle(rounds: int = 10) -> None:
    """Let pending callbacks and tasks run."""

    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeLink:
    """In-memory stand-in for a websocket connection."""

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.closed = False
        self.send_error: Exception | None = None
        self._inbox: asyncio.Queue[Any] = asyncio.Queue()

    async def send(self, message: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(message)

    async def close(self) -> None:
        self.closed = True
        self._inbox.put_nowait(_END)

    def push(self, frame: Any) -> None:
        if not isinstance(frame, (str, bytes)):
            frame = json.dumps(frame)
        self._inbox.put_nowait(frame)

    def drop(self, error: Exception | None = None) -> None:
        self._inbox.put_nowait(error if error is not None else _END)

    @property
    def sent_frames(self) -> list[Any]:
        return [json.loads(message) for message in self.sent]

    def __aiter__(self) -> "FakeLink":
        return self

    async def __anext__(self) -> Any:
        item = await self._inbox.get()
        if item is _END:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item


class FakeConnector:
    """Connector handing out a new :class:`FakeLink` per connection."""

    def __init__(self) -> None:
        self.urls: list[str] = []
        self.links: list[FakeLink] = []
        self.failures: list[Exception] = []
        self.gate: asyncio.Event | None = None

    async def __call__(self, url: str) -> FakeLink:
        self.urls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        if self.failures:
            raise self.failures.pop(0)
        link = FakeLink()
        self.links.append(link)
        return link


class ManualTimer:
    def __init__(self, delay: float, callback: Any) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose timers only fire when the test says so."""

    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def call_later(self, delay: float, callback: Any) -> ManualTimer:
        timer = ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def fire_pending(self) -> None:
        for timer in self.pending:
            timer.fired = True
            timer.callback()


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeApi:
    """Scriptable source of truth.

    With ``hold`` enabled, list and count requests stay pending until the test
    resolves the futures collected in ``held_lists`` and ``held_counts``.
    """

    def __init__(self) -> None:
        self.pages: dict[int, NotificationPageRead | Exception] = {}
        self.unread_count: int | Exception = 0
        self.failures: dict[str, Exception] = {}
        self.hold = False
        self.held_lists: list[tuple[int, asyncio.Future[Any]]] = []
        self.held_counts: list[asyncio.Future[Any]] = []
        self.calls: list[tuple[Any, ...]] = []
        self.gate: asyncio.Event | None = None

    async def list_notifications(self, *, page: int = 1, limit: int = 20) -> NotificationPageRead:
        self.calls.append(("list", page, limit))
        if self.hold:
            future = asyncio.get_running_loop().create_future()
            self.held_lists.append((page, future))
            return await future
        result = self.pages.get(page, make_page([]))
        if isinstance(result, Exception):
            raise result
        return result

    async def get_unread_count(self) -> int:
        self.calls.append(("unread_count",))
        if self.hold:
            future = asyncio.get_running_loop().create_future()
            self.held_counts.append(future)
            return await future
        if isinstance(self.unread_count, Exception):
            raise self.unread_count
        return self.unread_count

    async def mark_as_read(self, notification_id: str) -> None:
        await self._command("mark_as_read", notification_id)

    async def mark_all_read(self) -> None:
        await self._command("mark_all_read")

    async def delete_notification(self, notification_id: str) -> None:
        await self._command("delete_notification", notification_id)

    async def register_device(self, token: str, platform: str) -> Any:
        await self._command("register_device", token, platform)
        return {"registered": True}

    async def _command(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if self.gate is not None:
            await self.gate.wait()
        if name in self.failures:
            raise self.failures[name]
