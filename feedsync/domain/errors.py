"""Errors raised by the synchronization engine."""

from __future__ import annotations


class FeedSyncError(Exception):
    """Base class for synchronization engine errors."""


class MissingCredentialError(FeedSyncError, ValueError):
    """Raised when a connection or request is attempted without a credential."""

    def __init__(self, message: str = "A bearer credential is required") -> None:
        super().__init__(message)


class NotificationApiError(FeedSyncError):
    """A request against the notifications API failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code in (401, 403)


__all__ = ["FeedSyncError", "MissingCredentialError", "NotificationApiError"]
