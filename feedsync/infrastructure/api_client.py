"""Async client for the notifications REST API."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from feedsync.domain.errors import MissingCredentialError, NotificationApiError
from feedsync.interfaces.schemas import (
    DeviceRegistrationRequest,
    NotificationPageRead,
    UnreadCountRead,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class NotificationApiClient:
    """Perform authenticated request/response calls against the source of truth."""

    def __init__(
        self,
        base_url: str,
        credential: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not credential:
            raise MissingCredentialError()
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/",
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {credential}",
                "Content-Type": "application/json",
            },
        )

    async def __aenter__(self) -> "NotificationApiClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_notifications(self, *, page: int = 1, limit: int = 20) -> NotificationPageRead:
        response = await self._request(
            "GET", "notifications", params={"page": page, "limit": limit}
        )
        return self._parse(response, NotificationPageRead)

    async def get_unread_count(self) -> int:
        response = await self._request("GET", "notifications/unread-count")
        return self._parse(response, UnreadCountRead).count

    async def mark_as_read(self, notification_id: str) -> None:
        await self._request("PUT", f"notifications/{_segment(notification_id)}/read")

    async def mark_all_read(self) -> None:
        await self._request("PUT", "notifications/mark-all-read")

    async def delete_notification(self, notification_id: str) -> None:
        await self._request("DELETE", f"notifications/{_segment(notification_id)}")

    async def register_device(self, token: str, platform: str) -> Any:
        body = DeviceRegistrationRequest(token=token, platform=platform)
        response = await self._request(
            "POST", "notifications/register-device", json=body.model_dump()
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise NotificationApiError(f"Request timed out: {method} {url}") from exc
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            raise NotificationApiError(
                f"HTTP {status_code} from {method} {url}{_error_detail(exc.response)}",
                status_code=status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise NotificationApiError(f"{method} {url} failed: {exc}") from exc
        return response

    @staticmethod
    def _parse(response: httpx.Response, model: type[BaseModel]) -> Any:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            logger.warning("Malformed response from %s: %s", response.request.url, exc)
            raise NotificationApiError(
                f"Malformed response from {response.request.url.path}",
                status_code=response.status_code,
            ) from exc


def _segment(notification_id: str) -> str:
    """Encode ``notification_id`` as a single URL path segment."""

    return quote(notification_id, safe="")


def _error_detail(response: httpx.Response) -> str:
    """Return the server supplied error message, if any, as a suffix."""

    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail") or body.get("error")
        if message:
            return f": {message}"
    return ""


__all__ = ["DEFAULT_TIMEOUT", "NotificationApiClient"]
