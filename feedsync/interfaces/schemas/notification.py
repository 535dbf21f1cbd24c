"""Pydantic models describing notification payloads exchanged with the server."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from feedsync.domain.entities import (
    NOTIFICATION_KINDS,
    TARGET_TYPES,
    Notification,
    NotificationActor,
    NotificationTarget,
)
from feedsync.utils import ensure_app_timezone


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class NotificationActorRead(_WireModel):
    """User reference attached to a notification."""

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    display_name: str = Field(
        validation_alias=AliasChoices("display_name", "displayName", "name")
    )
    avatar: str | None = Field(
        default=None,
        validation_alias=AliasChoices("avatar", "profileImage", "profile_image"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class NotificationTargetRead(_WireModel):
    """Object affected by a notification."""

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    type: str
    review_id: str | None = Field(
        default=None, validation_alias=AliasChoices("review_id", "reviewId")
    )
    label: str | None = Field(
        default=None, validation_alias=AliasChoices("label", "beefery")
    )
    content: str | None = None
    title: str | None = None

    @field_validator("id", "review_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        if value not in TARGET_TYPES:
            raise ValueError(f"Unknown target type '{value}'")
        return value


class NotificationRead(_WireModel):
    """Representation of a notification as delivered by pull or push."""

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    kind: str = Field(validation_alias=AliasChoices("kind", "type"))
    actor: NotificationActorRead = Field(
        validation_alias=AliasChoices("actor", "sender")
    )
    target: NotificationTargetRead
    created_at: datetime = Field(
        validation_alias=AliasChoices("created_at", "createdAt", "date")
    )
    read: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("kind")
    @classmethod
    def _known_kind(cls, value: str) -> str:
        if value not in NOTIFICATION_KINDS:
            raise ValueError(f"Unknown notification kind '{value}'")
        return value

    @field_validator("metadata", mode="before")
    @classmethod
    def _default_metadata(cls, value: Any) -> Any:
        return value or {}

    def to_entity(self) -> Notification:
        return Notification(
            id=self.id,
            kind=self.kind,
            actor=NotificationActor(
                id=self.actor.id,
                display_name=self.actor.display_name,
                avatar=self.actor.avatar,
            ),
            target=NotificationTarget(
                id=self.target.id,
                type=self.target.type,
                review_id=self.target.review_id,
                label=self.target.label,
                content=self.target.content,
                title=self.target.title,
            ),
            created_at=ensure_app_timezone(self.created_at),
            read=self.read,
            metadata=dict(self.metadata),
        )


class PaginationRead(_WireModel):
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    pages: int = Field(ge=0)


class NotificationPageRead(_WireModel):
    """Response body of ``GET notifications``."""

    notifications: list[NotificationRead] = Field(default_factory=list)
    unread_count: int = Field(
        ge=0, validation_alias=AliasChoices("unread_count", "unreadCount")
    )
    pagination: PaginationRead | None = None

    def entities(self) -> tuple[Notification, ...]:
        return tuple(item.to_entity() for item in self.notifications)


class UnreadCountRead(_WireModel):
    """Response body of ``GET notifications/unread-count``."""

    count: int = Field(ge=0)


class DeviceRegistrationRequest(BaseModel):
    """Payload used to register a device for out-of-band push delivery."""

    token: str = Field(..., min_length=1)
    platform: str = Field(..., min_length=1)


class AuthenticateFrame(BaseModel):
    """Frame sent once per connection to authenticate the push channel."""

    type: Literal["authenticate"] = "authenticate"
    token: str = Field(..., min_length=1)


class NotificationFrame(_WireModel):
    """Push frame carrying a single notification."""

    type: Literal["notification"]
    notification: NotificationRead


class UnreadCountFrame(_WireModel):
    """Push frame carrying the authoritative unread count."""

    type: Literal["unread_count"]
    count: int = Field(ge=0)


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
