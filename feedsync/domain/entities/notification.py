"""Domain entity representing a feed notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

KIND_REVIEW_LIKE = "review_like"
KIND_COMMENT_LIKE = "comment_like"
KIND_REVIEW_COMMENT = "review_comment"
KIND_COMMENT_REPLY = "comment_reply"
KIND_NEW_REVIEW = "new_review"
KIND_NEW_USER = "new_user"
KIND_NEWS_LIKE = "news_like"
KIND_POLL_VOTE = "poll_vote"
KIND_TEST = "test"

NOTIFICATION_KINDS: frozenset[str] = frozenset(
    {
        KIND_REVIEW_LIKE,
        KIND_COMMENT_LIKE,
        KIND_REVIEW_COMMENT,
        KIND_COMMENT_REPLY,
        KIND_NEW_REVIEW,
        KIND_NEW_USER,
        KIND_NEWS_LIKE,
        KIND_POLL_VOTE,
        KIND_TEST,
    }
)

TARGET_TYPES: frozenset[str] = frozenset({"review", "comment", "news", "test"})


@dataclass(frozen=True)
class NotificationActor:
    """User who triggered the notification."""

    id: str
    display_name: str
    avatar: str | None = None


@dataclass(frozen=True)
class NotificationTarget:
    """Object affected by the notification, denormalized for display."""

    id: str
    type: str
    review_id: str | None = None
    label: str | None = None
    content: str | None = None
    title: str | None = None


@dataclass(frozen=True)
class Notification:
    """Atomic unit of the notification feed."""

    id: str
    kind: str
    actor: NotificationActor
    target: NotificationTarget
    created_at: datetime
    read: bool = False
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)


def describe_notification(notification: Notification) -> str:
    """Return the one-line text shown for ``notification`` in the feed."""

    actor = notification.actor.display_name
    target = notification.target
    label = target.label or "Unknown"

    if notification.kind == KIND_REVIEW_LIKE:
        return f"{actor} liked your review of {label}"
    if notification.kind == KIND_COMMENT_LIKE:
        return f"{actor} liked your comment on {label} review"
    if notification.kind == KIND_REVIEW_COMMENT:
        return f"{actor} commented on your review of {label}"
    if notification.kind == KIND_COMMENT_REPLY:
        return f"{actor} replied to your comment on {label} review"
    if notification.kind == KIND_NEW_REVIEW:
        return f"{actor} posted a new review of {label}"
    if notification.kind == KIND_NEW_USER:
        return f"{actor} joined"
    if notification.kind == KIND_NEWS_LIKE:
        return _with_title(f"{actor} liked your news post", target.title)
    if notification.kind == KIND_POLL_VOTE:
        return _with_title(f"{actor} voted on your poll", target.title)
    return f"{actor} interacted with your content"


def _with_title(text: str, title: str | None) -> str:
    return f"{text}: {title}" if title else text


__all__ = [
    "KIND_COMMENT_LIKE",
    "KIND_COMMENT_REPLY",
    "KIND_NEWS_LIKE",
    "KIND_NEW_REVIEW",
    "KIND_NEW_USER",
    "KIND_POLL_VOTE",
    "KIND_REVIEW_COMMENT",
    "KIND_REVIEW_LIKE",
    "KIND_TEST",
    "NOTIFICATION_KINDS",
    "TARGET_TYPES",
    "Notification",
    "NotificationActor",
    "NotificationTarget",
    "describe_notification",
]
