"""Domain entities exposed by the synchronization engine."""

from .connection import ConnectionStatus, SupervisorState
from .feed import NotificationState
from .notification import (
    KIND_COMMENT_LIKE,
    KIND_COMMENT_REPLY,
    KIND_NEW_REVIEW,
    KIND_NEW_USER,
    KIND_NEWS_LIKE,
    KIND_POLL_VOTE,
    KIND_REVIEW_COMMENT,
    KIND_REVIEW_LIKE,
    KIND_TEST,
    NOTIFICATION_KINDS,
    TARGET_TYPES,
    Notification,
    NotificationActor,
    NotificationTarget,
    describe_notification,
)

__all__ = [
    "ConnectionStatus",
    "SupervisorState",
    "NotificationState",
    "Notification",
    "NotificationActor",
    "NotificationTarget",
    "NOTIFICATION_KINDS",
    "TARGET_TYPES",
    "KIND_REVIEW_LIKE",
    "KIND_COMMENT_LIKE",
    "KIND_REVIEW_COMMENT",
    "KIND_COMMENT_REPLY",
    "KIND_NEW_REVIEW",
    "KIND_NEW_USER",
    "KIND_NEWS_LIKE",
    "KIND_POLL_VOTE",
    "KIND_TEST",
    "describe_notification",
]
