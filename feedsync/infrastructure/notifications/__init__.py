"""Push channel helpers for the infrastructure layer."""

from .channel import Connector, Link, TransportChannel, connect_websocket
from .frames import PushFrame, decode_push_frame, encode_authenticate_frame
from .supervisor import (
    DEFAULT_RECONNECT_DELAY,
    LoopScheduler,
    ReconnectionSupervisor,
    Scheduler,
    TimerHandle,
)

__all__ = [
    "Connector",
    "Link",
    "TransportChannel",
    "connect_websocket",
    "PushFrame",
    "decode_push_frame",
    "encode_authenticate_frame",
    "DEFAULT_RECONNECT_DELAY",
    "LoopScheduler",
    "ReconnectionSupervisor",
    "Scheduler",
    "TimerHandle",
]
