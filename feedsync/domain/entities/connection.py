"""States of the push channel and of its supervisor."""

from __future__ import annotations

from enum import Enum


class ConnectionStatus(str, Enum):
    """Lifecycle of a single transport channel."""

    CONNECTING = "connecting"
    OPEN = "open"
    AUTHENTICATING = "authenticating"
    READY = "ready"
    CLOSED = "closed"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (ConnectionStatus.CLOSED, ConnectionStatus.ERRORED)


class SupervisorState(str, Enum):
    """Lifecycle of the reconnection supervisor."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    STOPPED = "stopped"


__all__ = ["ConnectionStatus", "SupervisorState"]
