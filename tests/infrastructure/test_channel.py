"""Tests for the websocket transport channel."""

from __future__ import annotations

import pytest

from feedsync.domain.entities import ConnectionStatus
from feedsync.domain.errors import MissingCredentialError
from feedsync.infrastructure.notifications import TransportChannel
from feedsync.interfaces.schemas import NotificationFrame, UnreadCountFrame
from support import FakeConnector, notification_payload, settle

pytestmark = pytest.mark.anyio

URL = "ws://testserver/ws/notifications"


class Recorder:
    def __init__(self) -> None:
        self.frames: list[object] = []
        self.closed: list[BaseException | None] = []
        self.errors: list[BaseException | None] = []

    def attach(self, channel: TransportChannel) -> TransportChannel:
        channel.on_message(self.frames.append)
        channel.on_close(lambda _channel, exc: self.closed.append(exc))
        channel.on_error(lambda _channel, exc: self.errors.append(exc))
        return channel


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def channel(connector, recorder) -> TransportChannel:
    return recorder.attach(TransportChannel(URL, connector=connector))


async def test_open_sends_authenticate_frame_first(channel, connector):
    await channel.open("secret")
    try:
        assert connector.urls == [URL]
        assert connector.links[0].sent_frames == [{"type": "authenticate", "token": "secret"}]
        assert channel.status is ConnectionStatus.READY
    finally:
        await channel.close()


async def test_open_without_credential_raises(channel, connector):
    with pytest.raises(MissingCredentialError):
        await channel.open("")

    assert connector.urls == []


async def test_frames_are_delivered_in_order(channel, connector, recorder):
    await channel.open("secret")
    link = connector.links[0]

    link.push({"type": "notification", "notification": notification_payload("n1")})
    link.push({"type": "unread_count", "count": 3})
    await settle()

    assert isinstance(recorder.frames[0], NotificationFrame)
    assert isinstance(recorder.frames[1], UnreadCountFrame)
    assert recorder.frames[1].count == 3
    await channel.close()


async def test_malformed_frame_does_not_break_the_channel(channel, connector, recorder):
    await channel.open("secret")
    link = connector.links[0]

    link.push("{broken")
    link.push({"type": "mystery"})
    link.push({"type": "unread_count", "count": 1})
    await settle()

    assert len(recorder.frames) == 1
    assert channel.status is ConnectionStatus.READY
    assert recorder.closed == [] and recorder.errors == []
    await channel.close()


async def test_handler_failure_is_contained(connector, caplog):
    channel = TransportChannel(URL, connector=connector)
    received: list[object] = []

    def handler(frame):
        received.append(frame)
        if len(received) == 1:
            raise RuntimeError("boom")

    channel.on_message(handler)
    await channel.open("secret")
    link = connector.links[0]

    with caplog.at_level("ERROR"):
        link.push({"type": "unread_count", "count": 1})
        link.push({"type": "unread_count", "count": 2})
        await settle()

    assert len(received) == 2
    assert "Push frame handler failed" in caplog.text
    await channel.close()


async def test_remote_close_emits_one_close_event(channel, connector, recorder):
    await channel.open("secret")

    connector.links[0].drop()
    await settle()
    await channel.close()

    assert channel.status is ConnectionStatus.CLOSED
    assert recorder.closed == [None]
    assert recorder.errors == []


async def test_transport_failure_emits_one_error_event(channel, connector, recorder):
    await channel.open("secret")
    failure = ConnectionResetError("reset by peer")

    connector.links[0].drop(failure)
    await settle()
    await channel.close()

    assert channel.status is ConnectionStatus.ERRORED
    assert recorder.errors == [failure]
    assert recorder.closed == []


async def test_connect_failure_is_reported_as_error(channel, connector, recorder):
    failure = OSError("connection refused")
    connector.failures.append(failure)

    await channel.open("secret")

    assert channel.status is ConnectionStatus.ERRORED
    assert recorder.errors == [failure]
    assert connector.links == []


async def test_failed_authenticate_send_closes_link(connector, recorder):
    class RejectingConnector(FakeConnector):
        async def __call__(self, url):
            link = await super().__call__(url)
            link.send_error = ConnectionResetError("gone")
            return link

    rejecting = RejectingConnector()
    channel = recorder.attach(TransportChannel(URL, connector=rejecting))

    await channel.open("secret")

    assert channel.status is ConnectionStatus.ERRORED
    assert len(recorder.errors) == 1
    assert rejecting.links[0].closed is True


async def test_close_is_idempotent(channel, connector, recorder):
    await channel.open("secret")

    await channel.close()
    await channel.close()

    assert connector.links[0].closed is True
    assert recorder.closed == [None]


async def test_send_requires_open_channel(channel, connector):
    with pytest.raises(RuntimeError):
        await channel.send({"type": "ping"})

    await channel.open("secret")
    await channel.send({"type": "ping"})
    assert connector.links[0].sent_frames[-1] == {"type": "ping"}

    await channel.close()
    with pytest.raises(RuntimeError):
        await channel.send("ping")
