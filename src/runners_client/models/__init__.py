"""Backend request and response models (camelCase on the wire)."""

from runners_client.models.auth import GoogleLoginRequest, GoogleLoginResponse
from runners_client.models.base import ApiModel
from runners_client.models.community import (
    BoardType,
    CommunityComment,
    CommunityCommentCursorListResponse,
    CommunityCommentMutationResponse,
    CommunityCommentRecommendResponse,
    CommunityPostCountResponse,
    CommunityPostCursorListResponse,
    CommunityPostDetail,
    CommunityPostMutationResponse,
    CommunityPostRecommendResponse,
    CommunityPostSummary,
    CreateCommunityCommentRequest,
    CreateCommunityPostRequest,
    DeleteCommunityCommentResponse,
)
from runners_client.models.notifications import (
    NotificationCursorListResponse,
    NotificationItem,
    NotificationType,
    UnreadNotificationCountResponse,
)
from runners_client.models.users import MyProfile, UpdateMyProfileRequest

__all__ = [
    "ApiModel",
    "BoardType",
    "CommunityComment",
    "CommunityCommentCursorListResponse",
    "CommunityCommentMutationResponse",
    "CommunityCommentRecommendResponse",
    "CommunityPostCountResponse",
    "CommunityPostCursorListResponse",
    "CommunityPostDetail",
    "CommunityPostMutationResponse",
    "CommunityPostRecommendResponse",
    "CommunityPostSummary",
    "CreateCommunityCommentRequest",
    "CreateCommunityPostRequest",
    "DeleteCommunityCommentResponse",
    "GoogleLoginRequest",
    "GoogleLoginResponse",
    "MyProfile",
    "NotificationCursorListResponse",
    "NotificationItem",
    "NotificationType",
    "UnreadNotificationCountResponse",
    "UpdateMyProfileRequest",
]
