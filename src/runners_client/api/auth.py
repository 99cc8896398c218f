"""Auth endpoints."""

from __future__ import annotations

__all__ = [
    "AuthApi",
]

from runners_client.constants import GOOGLE_LOGIN_PATH
from runners_client.http.client import AuthenticatedClient
from runners_client.models.auth import GoogleLoginRequest, GoogleLoginResponse


class AuthApi:
    """Login endpoints. Auth paths are sent without a bearer token."""

    def __init__(self, client: AuthenticatedClient, google_login_path: str = GOOGLE_LOGIN_PATH) -> None:
        self._client = client
        self._google_login_path = google_login_path

    async def google_login(self, id_token: str) -> GoogleLoginResponse:
        """Exchange a Google ID token for an access token (refresh cookie is set by the server)."""
        body = GoogleLoginRequest(id_token=id_token).to_payload()
        data = await self._client.request_json("POST", self._google_login_path, json=body)
        return GoogleLoginResponse.model_validate(data)
