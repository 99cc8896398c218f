"""Backend API repositories built on the authenticated client."""

from runners_client.api.auth import AuthApi
from runners_client.api.community import CommunityCommentsApi, CommunityPostsApi
from runners_client.api.notifications import NotificationsApi
from runners_client.api.users import UsersApi

__all__ = [
    "AuthApi",
    "CommunityCommentsApi",
    "CommunityPostsApi",
    "NotificationsApi",
    "UsersApi",
]
