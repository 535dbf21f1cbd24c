"""Use cases that keep the notification feed synchronized."""

from .actions import ActionDispatcher, ActionOutcome, NotificationCommands
from .refresh import NotificationSource, RefreshCoordinator

__all__ = [
    "ActionDispatcher",
    "ActionOutcome",
    "NotificationCommands",
    "NotificationSource",
    "RefreshCoordinator",
]
