"""Auth endpoint payloads."""

from __future__ import annotations

__all__ = [
    "GoogleLoginRequest",
    "GoogleLoginResponse",
]

from pydantic import Field

from runners_client.models.base import ApiModel


class GoogleLoginRequest(ApiModel):
    id_token: str = Field(min_length=1)


class GoogleLoginResponse(ApiModel):
    """Result of POST /api/auth/google.

    The refresh credential is normally delivered as an httpOnly cookie;
    refresh_token is only present for clients that receive it in the body.
    """

    user_id: int
    email: str
    name: str | None = None
    nickname: str | None = None
    picture: str | None = None
    access_token: str = Field(min_length=1)
    is_new_user: bool = False
    refresh_token: str | None = None

    def __repr__(self) -> str:
        return f"GoogleLoginResponse(user_id={self.user_id}, email={self.email!r}, is_new_user={self.is_new_user})"
