"""Infrastructure adapters: HTTP source of truth and push channel."""

from .api_client import NotificationApiClient

__all__ = ["NotificationApiClient"]
