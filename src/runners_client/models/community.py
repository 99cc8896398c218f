"""Community board payloads: posts, comments, recommendations."""

from __future__ import annotations

__all__ = [
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
]

from datetime import datetime
from enum import Enum

from pydantic import Field

from runners_client.models.base import ApiModel


class BoardType(str, Enum):
    FREE = "FREE"
    QNA = "QNA"
    INFO = "INFO"


# =============================================================================
# Posts
# =============================================================================


class CreateCommunityPostRequest(ApiModel):
    """Body for creating and updating a post."""

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    image_keys: list[str] | None = None
    board_type: BoardType = BoardType.FREE


class CommunityPostSummary(ApiModel):
    post_id: int
    author_id: int
    author_name: str
    author_picture: str | None = None
    author_total_distance_km: float | None = None
    board_type: BoardType
    title: str
    content_preview: str = ""
    thumbnail_url: str | None = None
    view_count: int = 0
    recommend_count: int = 0
    comment_count: int = 0
    created_at: datetime


class CommunityPostCursorListResponse(ApiModel):
    posts: list[CommunityPostSummary] = Field(default_factory=list)
    next_cursor: str | None = None


class CommunityPostCountResponse(ApiModel):
    count: int = 0


class CommunityPostDetail(ApiModel):
    post_id: int
    author_id: int
    author_name: str
    author_picture: str | None = None
    author_total_distance_km: float | None = None
    board_type: BoardType
    title: str
    content: str
    image_keys: list[str] = Field(default_factory=list)
    image_urls: list[str] = Field(default_factory=list)
    view_count: int = 0
    recommend_count: int = 0
    comment_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None


class CommunityPostMutationResponse(ApiModel):
    post_id: int
    author_id: int
    author_name: str
    author_picture: str | None = None
    board_type: BoardType
    title: str
    content: str
    view_count: int = 0
    recommend_count: int = 0
    comment_count: int = 0
    created_at: datetime
    image_urls: list[str] = Field(default_factory=list)


class CommunityPostRecommendResponse(ApiModel):
    post_id: int
    recommended: bool
    recommend_count: int


# =============================================================================
# Comments
# =============================================================================


class CreateCommunityCommentRequest(ApiModel):
    """Body for creating and updating a comment. parent_id makes it a reply."""

    content: str = Field(min_length=1)
    parent_id: int | None = None


class CommunityComment(ApiModel):
    comment_id: int
    post_id: int
    author_id: int
    author_name: str
    author_picture: str | None = None
    author_total_distance_km: float | None = None
    parent_id: int | None = None
    content: str
    recommend_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None


class CommunityCommentCursorListResponse(ApiModel):
    comments: list[CommunityComment] = Field(default_factory=list)
    next_cursor: str | None = None


class CommunityCommentMutationResponse(ApiModel):
    comment: CommunityComment
    comment_count: int


class DeleteCommunityCommentResponse(ApiModel):
    comment_id: int
    post_id: int
    comment_count: int
    deleted_at: datetime | None = None


class CommunityCommentRecommendResponse(ApiModel):
    post_id: int
    comment_id: int
    recommended: bool
    recommend_count: int
