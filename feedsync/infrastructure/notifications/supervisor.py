"""Lifecycle owner of the push channel."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Protocol

from feedsync.domain.entities import ConnectionStatus, SupervisorState
from feedsync.domain.errors import MissingCredentialError

from .channel import TransportChannel
from .frames import PushFrame

logger = logging.getLogger(__name__)

DEFAULT_RECONNECT_DELAY = 5.0


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Source of cancellable one-shot timers."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """Schedule timers on the running asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


ChannelFactory = Callable[[], TransportChannel]
EventHandler = Callable[[PushFrame], None]


class ReconnectionSupervisor:
    """Keep one authenticated push channel alive until explicitly stopped.

    ``idle -> connecting -> connected -> disconnected -> connecting -> ...``;
    ``stopped`` is terminal. A dropped channel is rebuilt with the same
    credential after a fixed delay, and at most one reconnection timer is
    pending at any time.
    """

    def __init__(
        self,
        channel_factory: ChannelFactory,
        on_event: EventHandler,
        *,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._channel_factory = channel_factory
        self._on_event = on_event
        self._reconnect_delay = reconnect_delay
        self._scheduler = scheduler or LoopScheduler()
        self._state = SupervisorState.IDLE
        self._credential = ""
        self._channel: TransportChannel | None = None
        self._connect_task: asyncio.Task[None] | None = None
        self._timer: TimerHandle | None = None
        self._attempts = 0

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def channel(self) -> TransportChannel | None:
        return self._channel

    @property
    def connection_attempts(self) -> int:
        return self._attempts

    @property
    def reconnect_pending(self) -> bool:
        return self._timer is not None

    def supervise(self, credential: str) -> None:
        """Start connecting with ``credential``; must run inside an event loop."""

        if not credential:
            raise MissingCredentialError()
        if self._state is not SupervisorState.IDLE:
            raise RuntimeError(f"Supervisor already started (state: {self._state.value})")
        self._credential = credential
        self._start_connect()

    async def stop(self) -> None:
        """Cancel any pending reconnection and close the live channel."""

        if self._state is SupervisorState.STOPPED:
            return
        self._state = SupervisorState.STOPPED

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        task = self._connect_task
        self._connect_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        channel = self._channel
        self._channel = None
        if channel is not None:
            await channel.close()
        logger.info("Push channel supervisor stopped")

    def _start_connect(self) -> None:
        self._state = SupervisorState.CONNECTING
        self._connect_task = asyncio.get_running_loop().create_task(self._connect())

    async def _connect(self) -> None:
        channel = self._channel_factory()
        self._channel = channel
        self._attempts += 1
        channel.on_message(lambda frame: self._handle_frame(channel, frame))
        channel.on_close(self._handle_disconnect)
        channel.on_error(self._handle_disconnect)

        logger.info("Opening push channel (attempt %s)", self._attempts)
        await channel.open(self._credential)

        if self._state is SupervisorState.STOPPED:
            await channel.close()
            return
        if channel is self._channel and channel.status is ConnectionStatus.READY:
            self._state = SupervisorState.CONNECTED

    def _handle_frame(self, channel: TransportChannel, frame: PushFrame) -> None:
        if self._state is SupervisorState.STOPPED or channel is not self._channel:
            logger.debug("Dropping %s frame from a retired push channel", frame.type)
            return
        self._on_event(frame)

    def _handle_disconnect(
        self, channel: TransportChannel, exc: BaseException | None
    ) -> None:
        if self._state is SupervisorState.STOPPED:
            return
        if channel is not self._channel:
            return

        self._channel = None
        self._state = SupervisorState.DISCONNECTED
        logger.info(
            "Push channel %s%s; reconnecting in %.1f seconds",
            channel.status.value,
            f" ({exc})" if exc else "",
            self._reconnect_delay,
        )
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._timer is not None:
            return
        self._timer = self._scheduler.call_later(self._reconnect_delay, self._reconnect)

    def _reconnect(self) -> None:
        self._timer = None
        if self._state is SupervisorState.STOPPED:
            return
        self._start_connect()


__all__ = [
    "ChannelFactory",
    "DEFAULT_RECONNECT_DELAY",
    "LoopScheduler",
    "ReconnectionSupervisor",
    "Scheduler",
    "TimerHandle",
]
