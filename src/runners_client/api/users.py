"""User profile endpoints."""

from __future__ import annotations

__all__ = [
    "UsersApi",
]

from runners_client.http.client import AuthenticatedClient
from runners_client.models.users import MyProfile, UpdateMyProfileRequest


class UsersApi:
    def __init__(self, client: AuthenticatedClient) -> None:
        self._client = client

    async def get_me(self) -> MyProfile:
        data = await self._client.request_json("GET", "/api/users/me")
        return MyProfile.model_validate(data)

    async def update_profile(self, request: UpdateMyProfileRequest) -> MyProfile:
        data = await self._client.request_json(
            "PATCH", "/api/users/me/profile", json=request.to_payload()
        )
        return MyProfile.model_validate(data)
