"""Community board endpoints: posts, comments and recommendations."""

from __future__ import annotations

__all__ = [
    "CommunityCommentsApi",
    "CommunityPostsApi",
]

import asyncio

from runners_client.api._params import cursor_params
from runners_client.constants import DEFAULT_PAGE_SIZE
from runners_client.http.client import AuthenticatedClient
from runners_client.models.community import (
    BoardType,
    CommunityCommentCursorListResponse,
    CommunityCommentMutationResponse,
    CommunityCommentRecommendResponse,
    CommunityPostCountResponse,
    CommunityPostCursorListResponse,
    CommunityPostDetail,
    CommunityPostMutationResponse,
    CommunityPostRecommendResponse,
    CreateCommunityCommentRequest,
    CreateCommunityPostRequest,
    DeleteCommunityCommentResponse,
)

_POSTS = "/api/community/posts"


class CommunityPostsApi:
    """Post listing, CRUD, activity counts and recommendations.

    Usage:
        posts = CommunityPostsApi(client)
        page = await posts.list_posts(board_type=BoardType.FREE)
        while page.next_cursor:
            page = await posts.list_posts(cursor=page.next_cursor)
    """

    def __init__(self, client: AuthenticatedClient) -> None:
        self._client = client

    async def list_posts(
        self,
        board_type: BoardType | None = None,
        cursor: str | None = None,
        size: int = DEFAULT_PAGE_SIZE,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> CommunityPostCursorListResponse:
        params = cursor_params(cursor, size, boardType=board_type.value if board_type else None)
        data = await self._client.request_json(
            "GET", _POSTS, params=params, cancel_event=cancel_event
        )
        return CommunityPostCursorListResponse.model_validate(data)

    async def get_post(self, post_id: int) -> CommunityPostDetail:
        data = await self._client.request_json("GET", f"{_POSTS}/{post_id}")
        return CommunityPostDetail.model_validate(data)

    async def create_post(self, request: CreateCommunityPostRequest) -> CommunityPostMutationResponse:
        data = await self._client.request_json("POST", _POSTS, json=request.to_payload())
        return CommunityPostMutationResponse.model_validate(data)

    async def update_post(
        self, post_id: int, request: CreateCommunityPostRequest
    ) -> CommunityPostMutationResponse:
        data = await self._client.request_json(
            "PUT", f"{_POSTS}/{post_id}", json=request.to_payload()
        )
        return CommunityPostMutationResponse.model_validate(data)

    async def delete_post(self, post_id: int) -> None:
        await self._client.delete(f"{_POSTS}/{post_id}")

    # -------------------------------------------------------------------------
    # My activity
    # -------------------------------------------------------------------------

    async def list_my_posts(
        self, cursor: str | None = None, size: int = DEFAULT_PAGE_SIZE
    ) -> CommunityPostCursorListResponse:
        data = await self._client.request_json(
            "GET", f"{_POSTS}/me", params=cursor_params(cursor, size)
        )
        return CommunityPostCursorListResponse.model_validate(data)

    async def list_commented_posts(
        self, cursor: str | None = None, size: int = DEFAULT_PAGE_SIZE
    ) -> CommunityPostCursorListResponse:
        data = await self._client.request_json(
            "GET", f"{_POSTS}/commented", params=cursor_params(cursor, size)
        )
        return CommunityPostCursorListResponse.model_validate(data)

    async def count_my_posts(self) -> int:
        data = await self._client.request_json("GET", f"{_POSTS}/me/count")
        return CommunityPostCountResponse.model_validate(data).count

    async def count_commented_posts(self) -> int:
        data = await self._client.request_json("GET", f"{_POSTS}/commented/count")
        return CommunityPostCountResponse.model_validate(data).count

    # -------------------------------------------------------------------------
    # Recommendations
    # -------------------------------------------------------------------------

    async def get_recommend_status(
        self, post_id: int, *, cancel_event: asyncio.Event | None = None
    ) -> CommunityPostRecommendResponse:
        return await self._recommend("GET", post_id, cancel_event)

    async def recommend(
        self, post_id: int, *, cancel_event: asyncio.Event | None = None
    ) -> CommunityPostRecommendResponse:
        return await self._recommend("PUT", post_id, cancel_event)

    async def unrecommend(
        self, post_id: int, *, cancel_event: asyncio.Event | None = None
    ) -> CommunityPostRecommendResponse:
        return await self._recommend("DELETE", post_id, cancel_event)

    async def _recommend(
        self, method: str, post_id: int, cancel_event: asyncio.Event | None
    ) -> CommunityPostRecommendResponse:
        data = await self._client.request_json(
            method, f"{_POSTS}/{post_id}/recommend", cancel_event=cancel_event
        )
        return CommunityPostRecommendResponse.model_validate(data)


class CommunityCommentsApi:
    """Comments on a post, including replies (parent_id) and recommendations."""

    def __init__(self, client: AuthenticatedClient) -> None:
        self._client = client

    @staticmethod
    def _comments_path(post_id: int) -> str:
        return f"{_POSTS}/{post_id}/comments"

    async def list_comments(
        self, post_id: int, cursor: str | None = None, size: int = DEFAULT_PAGE_SIZE
    ) -> CommunityCommentCursorListResponse:
        data = await self._client.request_json(
            "GET", self._comments_path(post_id), params=cursor_params(cursor, size)
        )
        return CommunityCommentCursorListResponse.model_validate(data)

    async def create_comment(
        self, post_id: int, request: CreateCommunityCommentRequest
    ) -> CommunityCommentMutationResponse:
        data = await self._client.request_json(
            "POST", self._comments_path(post_id), json=request.to_payload()
        )
        return CommunityCommentMutationResponse.model_validate(data)

    async def update_comment(
        self, post_id: int, comment_id: int, request: CreateCommunityCommentRequest
    ) -> CommunityCommentMutationResponse:
        data = await self._client.request_json(
            "PUT", f"{self._comments_path(post_id)}/{comment_id}", json=request.to_payload()
        )
        return CommunityCommentMutationResponse.model_validate(data)

    async def delete_comment(self, post_id: int, comment_id: int) -> DeleteCommunityCommentResponse:
        data = await self._client.request_json(
            "DELETE", f"{self._comments_path(post_id)}/{comment_id}"
        )
        return DeleteCommunityCommentResponse.model_validate(data)

    async def get_recommend_status(
        self, post_id: int, comment_id: int, *, cancel_event: asyncio.Event | None = None
    ) -> CommunityCommentRecommendResponse:
        return await self._recommend("GET", post_id, comment_id, cancel_event)

    async def recommend(
        self, post_id: int, comment_id: int, *, cancel_event: asyncio.Event | None = None
    ) -> CommunityCommentRecommendResponse:
        return await self._recommend("PUT", post_id, comment_id, cancel_event)

    async def unrecommend(
        self, post_id: int, comment_id: int, *, cancel_event: asyncio.Event | None = None
    ) -> CommunityCommentRecommendResponse:
        return await self._recommend("DELETE", post_id, comment_id, cancel_event)

    async def _recommend(
        self,
        method: str,
        post_id: int,
        comment_id: int,
        cancel_event: asyncio.Event | None,
    ) -> CommunityCommentRecommendResponse:
        data = await self._client.request_json(
            method,
            f"{self._comments_path(post_id)}/{comment_id}/recommend",
            cancel_event=cancel_event,
        )
        return CommunityCommentRecommendResponse.model_validate(data)
