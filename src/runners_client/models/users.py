"""User profile payloads."""

from __future__ import annotations

__all__ = [
    "MyProfile",
    "UpdateMyProfileRequest",
]

from runners_client.models.base import ApiModel


class MyProfile(ApiModel):
    user_id: int
    email: str
    name: str | None = None
    nickname: str | None = None
    intro: str | None = None
    picture: str | None = None
    role: str | None = None
    total_distance_km: float | None = None


class UpdateMyProfileRequest(ApiModel):
    """PATCH body; fields left as None are not sent."""

    nickname: str | None = None
    intro: str | None = None
