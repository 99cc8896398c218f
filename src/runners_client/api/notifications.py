"""Notification endpoints."""

from __future__ import annotations

__all__ = [
    "NotificationsApi",
]

from runners_client.api._params import cursor_params
from runners_client.constants import DEFAULT_PAGE_SIZE
from runners_client.http.client import AuthenticatedClient
from runners_client.models.notifications import (
    NotificationCursorListResponse,
    UnreadNotificationCountResponse,
)

_BASE = "/api/notifications"


class NotificationsApi:
    """In-app notifications for the signed-in user."""

    def __init__(self, client: AuthenticatedClient) -> None:
        self._client = client

    async def list(
        self, cursor: str | None = None, size: int = DEFAULT_PAGE_SIZE
    ) -> NotificationCursorListResponse:
        data = await self._client.request_json("GET", _BASE, params=cursor_params(cursor, size))
        return NotificationCursorListResponse.model_validate(data)

    async def unread_count(self) -> int:
        data = await self._client.request_json("GET", f"{_BASE}/unread-count")
        return UnreadNotificationCountResponse.model_validate(data).unread_count

    async def mark_read(self, notification_id: int) -> None:
        # Server answers 204 No Content
        await self._client.put(f"{_BASE}/{notification_id}/read")

    async def mark_all_read(self) -> None:
        await self._client.put(f"{_BASE}/read-all")
