"""Tests for server-confirmed notification actions."""

from __future__ import annotations

import asyncio

import pytest

from feedsync.application.store import (
    MarkAsRead,
    NotificationStore,
    RemoveNotification,
    SetNotifications,
    SetUnreadCount,
)
from feedsync.application.use_cases.notifications import ActionDispatcher
from feedsync.domain.errors import NotificationApiError
from support import FakeApi, make_notification, settle

pytestmark = pytest.mark.anyio


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def store() -> NotificationStore:
    store = NotificationStore()
    store.dispatch(
        SetNotifications((make_notification("n1"), make_notification("n2", minutes_ago=1)))
    )
    store.dispatch(SetUnreadCount(2))
    return store


@pytest.fixture
def confirmed() -> list[object]:
    return []


@pytest.fixture
def dispatcher(store, api, confirmed) -> ActionDispatcher:
    return ActionDispatcher(store, api, on_confirmed=confirmed.append)


async def test_mark_as_read_applies_after_confirmation(dispatcher, store, api, confirmed):
    outcome = await dispatcher.mark_as_read("n1")

    assert outcome.ok
    assert api.calls == [("mark_as_read", "n1")]
    assert store.get_state().find("n1").read is True
    assert store.get_state().unread_count == 1
    assert confirmed == [MarkAsRead("n1")]


async def test_store_is_untouched_until_server_answers(dispatcher, store, api):
    api.gate = asyncio.Event()
    before = store.get_state()

    pending = asyncio.ensure_future(dispatcher.mark_as_read("n1"))
    await settle()

    assert dispatcher.is_pending("n1")
    assert store.get_state() is before

    api.gate.set()
    assert (await pending).ok
    assert not dispatcher.is_pending("n1")
    assert store.get_state().find("n1").read is True


async def test_failed_action_leaves_store_unchanged(dispatcher, store, api, confirmed):
    api.failures["mark_as_read"] = NotificationApiError(
        "Notification not found", status_code=404
    )
    before = store.get_state()

    outcome = await dispatcher.mark_as_read("n1")

    assert not outcome.ok
    assert outcome.error == "Notification not found"
    assert store.get_state() is before
    assert confirmed == []
    assert not dispatcher.is_pending("n1")


async def test_second_action_for_same_notification_is_rejected(dispatcher, api):
    api.gate = asyncio.Event()
    first = asyncio.ensure_future(dispatcher.delete("n1"))
    await settle()

    second = await dispatcher.mark_as_read("n1")

    assert not second.ok
    assert "previous request is pending" in second.error
    assert api.calls == [("delete_notification", "n1")]

    api.gate.set()
    assert (await first).ok


async def test_actions_on_different_notifications_run_concurrently(dispatcher, store, api):
    api.gate = asyncio.Event()
    first = asyncio.ensure_future(dispatcher.mark_as_read("n1"))
    second = asyncio.ensure_future(dispatcher.mark_as_read("n2"))
    await settle()
    api.gate.set()

    outcomes = await asyncio.gather(first, second)

    assert all(outcome.ok for outcome in outcomes)
    assert store.get_state().unread_count == 0


async def test_mark_all_read(dispatcher, store, api, confirmed):
    outcome = await dispatcher.mark_all_read()

    assert outcome.ok
    assert api.calls == [("mark_all_read",)]
    assert store.get_state().unread_count == 0
    assert all(n.read for n in store.get_state().notifications)
    assert len(confirmed) == 1


async def test_delete_removes_entry_after_confirmation(dispatcher, store, confirmed):
    outcome = await dispatcher.delete("n2")

    assert outcome.ok
    assert store.get_state().ids == ("n1",)
    assert confirmed == [RemoveNotification("n2")]


async def test_empty_id_is_rejected_without_a_request(dispatcher, api):
    outcome = await dispatcher.delete("")

    assert not outcome.ok
    assert api.calls == []


async def test_register_device_never_touches_the_feed(dispatcher, store, api, confirmed):
    before = store.get_state()

    outcome = await dispatcher.register_device("device-token", "ios")

    assert outcome.ok
    assert outcome.payload == {"registered": True}
    assert api.calls == [("register_device", "device-token", "ios")]
    assert store.get_state() is before
    assert confirmed == []


async def test_register_device_failure_is_reported(dispatcher, store, api, caplog):
    api.failures["register_device"] = NotificationApiError("HTTP 500", status_code=500)
    before = store.get_state()

    with caplog.at_level("WARNING"):
        outcome = await dispatcher.register_device("device-token", "android")

    assert not outcome.ok
    assert outcome.error == "HTTP 500"
    assert store.get_state() is before
    assert "Failed to register device token" in caplog.text
