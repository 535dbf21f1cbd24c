"""Websocket transport that delivers push frames for one connection."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Protocol

import websockets
from pydantic import BaseModel
from websockets.exceptions import ConnectionClosedOK

from feedsync.domain.entities import ConnectionStatus
from feedsync.domain.errors import MissingCredentialError

from .frames import PushFrame, decode_push_frame, encode_authenticate_frame

logger = logging.getLogger(__name__)


class Link(Protocol):
    """Minimal surface of a websocket connection used by the channel."""

    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> Any: ...


Connector = Callable[[str], Awaitable[Link]]
MessageHandler = Callable[[PushFrame], None]
CloseHandler = Callable[["TransportChannel", BaseException | None], None]


async def connect_websocket(url: str) -> Link:
    """Open a websocket connection to ``url``."""

    return await websockets.connect(url)


class TransportChannel:
    """Bidirectional, message-framed connection authenticated after connect.

    The channel sends a single authenticate frame as soon as the link is up and
    considers itself ready once that frame went out. Inbound frames are decoded
    and handed to the message handler one at a time in arrival order. A closed
    or failed link emits exactly one close or error event; reconnecting is the
    caller's job.
    """

    def __init__(self, url: str, *, connector: Connector | None = None) -> None:
        self._url = url
        self._connector = connector or connect_websocket
        self._status = ConnectionStatus.CONNECTING
        self._link: Link | None = None
        self._reader: asyncio.Task[None] | None = None
        self._closing = False
        self._on_message: MessageHandler | None = None
        self._on_close: CloseHandler | None = None
        self._on_error: CloseHandler | None = None

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def url(self) -> str:
        return self._url

    def on_message(self, handler: MessageHandler | None) -> None:
        self._on_message = handler

    def on_close(self, handler: CloseHandler | None) -> None:
        self._on_close = handler

    def on_error(self, handler: CloseHandler | None) -> None:
        self._on_error = handler

    async def open(self, credential: str) -> "TransportChannel":
        """Connect, authenticate with ``credential`` and start reading frames.

        Connection and authentication failures are reported through the error
        handler rather than raised.
        """

        if not credential:
            raise MissingCredentialError()

        self._status = ConnectionStatus.CONNECTING
        try:
            link = await self._connector(self._url)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Push channel connection to %s failed: %s", self._url, exc)
            self._terminate(ConnectionStatus.ERRORED, exc)
            return self

        self._link = link
        if self._closing:
            await self._close_link()
            return self

        self._status = ConnectionStatus.OPEN
        self._status = ConnectionStatus.AUTHENTICATING
        try:
            await link.send(encode_authenticate_frame(credential))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Push channel authentication frame not sent: %s", exc)
            self._terminate(ConnectionStatus.ERRORED, exc)
            await self._close_link()
            return self

        self._status = ConnectionStatus.READY
        logger.info("Push channel ready on %s", self._url)
        self._reader = asyncio.get_running_loop().create_task(self._read_frames(link))
        return self

    async def send(self, frame: BaseModel | dict[str, Any] | str) -> None:
        """Send ``frame`` over the open link."""

        if self._link is None or self._status.is_terminal:
            raise RuntimeError("Push channel is not open")
        if isinstance(frame, BaseModel):
            message = frame.model_dump_json()
        elif isinstance(frame, dict):
            message = json.dumps(frame)
        else:
            message = frame
        await self._link.send(message)

    async def close(self) -> None:
        """Stop reading, close the link and emit the close event if still due."""

        if self._closing:
            return
        self._closing = True

        reader = self._reader
        self._reader = None
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            await asyncio.gather(reader, return_exceptions=True)

        await self._close_link()
        self._terminate(ConnectionStatus.CLOSED, None)

    async def _read_frames(self, link: Link) -> None:
        try:
            async for raw in link:
                self._handle_raw(raw)
        except asyncio.CancelledError:
            raise
        except ConnectionClosedOK as exc:
            self._terminate(ConnectionStatus.CLOSED, exc)
            return
        except Exception as exc:
            logger.warning("Push channel on %s failed: %s", self._url, exc)
            self._terminate(ConnectionStatus.ERRORED, exc)
            return
        self._terminate(ConnectionStatus.CLOSED, None)

    def _handle_raw(self, raw: str | bytes) -> None:
        frame = decode_push_frame(raw)
        if frame is None or self._on_message is None:
            return
        try:
            self._on_message(frame)
        except Exception:
            logger.exception("Push frame handler failed for %s frame", frame.type)

    def _terminate(self, status: ConnectionStatus, exc: BaseException | None) -> None:
        if self._status.is_terminal:
            return
        self._status = status
        handler = self._on_close if status is ConnectionStatus.CLOSED else self._on_error
        if handler is None:
            return
        try:
            handler(self, exc)
        except Exception:
            logger.exception("Push channel %s handler failed", status.value)

    async def _close_link(self) -> None:
        link = self._link
        if link is None:
            return
        try:
            await link.close()
        except Exception as exc:  # pragma: no cover - depends on the remote side
            logger.debug("Ignoring error while closing push channel: %s", exc)


__all__ = ["Connector", "Link", "TransportChannel", "connect_websocket"]
