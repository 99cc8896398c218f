"""Notification payloads."""

from __future__ import annotations

__all__ = [
    "NotificationCursorListResponse",
    "NotificationItem",
    "NotificationType",
    "UnreadNotificationCountResponse",
]

from datetime import datetime
from enum import Enum

from pydantic import AliasChoices, Field

from runners_client.models.base import ApiModel


class NotificationType(str, Enum):
    """Notification kinds. Unrecognized values map to UNKNOWN."""

    COMMENT_ON_MY_POST = "COMMENT_ON_MY_POST"
    COMMENT_ON_MY_COMMENTED_POST = "COMMENT_ON_MY_COMMENTED_POST"
    REPLY_TO_MY_COMMENT = "REPLY_TO_MY_COMMENT"
    RECOMMEND_ON_MY_POST = "RECOMMEND_ON_MY_POST"
    RECOMMEND_ON_MY_COMMENT = "RECOMMEND_ON_MY_COMMENT"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value: object) -> "NotificationType":
        if isinstance(value, str):
            normalized = value.strip().upper()
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.UNKNOWN


class NotificationItem(ApiModel):
    id: int
    type: NotificationType = NotificationType.UNKNOWN
    related_post_id: int | None = None
    related_comment_id: int | None = None
    post_title_preview: str | None = None
    comment_preview: str | None = None
    actor_id: int | None = None
    actor_name: str | None = None
    actor_picture: str | None = None
    # Older servers serialize the boolean as "read"
    is_read: bool = Field(default=False, validation_alias=AliasChoices("isRead", "read", "is_read"))
    created_at: datetime
    read_at: datetime | None = None


class NotificationCursorListResponse(ApiModel):
    notifications: list[NotificationItem] = Field(default_factory=list)
    has_next: bool = False
    next_cursor: str | None = None


class UnreadNotificationCountResponse(ApiModel):
    unread_count: int = 0
