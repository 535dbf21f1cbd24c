"""Wire schemas for the notifications API and push channel."""

from .notification import (
    AuthenticateFrame,
    DeviceRegistrationRequest,
    NotificationActorRead,
    NotificationFrame,
    NotificationPageRead,
    NotificationRead,
    NotificationTargetRead,
    PaginationRead,
    UnreadCountFrame,
    UnreadCountRead,
)

__all__ = [
    "AuthenticateFrame",
    "DeviceRegistrationRequest",
    "NotificationActorRead",
    "NotificationFrame",
    "NotificationPageRead",
    "NotificationRead",
    "NotificationTargetRead",
    "PaginationRead",
    "UnreadCountFrame",
    "UnreadCountRead",
]
