"""API endpoints for movie comments."""

from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from cinestream.api.v1.dependencies import get_client_origin
from cinestream.models.comment import Comment, CommentCreateRequest, DeviceOwnership
from cinestream.models.common import CommentID, MessageResponse, MovieID
from cinestream.services import comment_service

router = APIRouter(prefix="/comments", tags=["Comments"])


@router.get("/movie/{movie_id}", response_model=List[Comment], summary="List comments")
async def list_comments(movie_id: MovieID):
    return await comment_service.list_comments_for_movie(movie_id)


@router.post(
    "",
    response_model=Comment,
    status_code=status.HTTP_201_CREATED,
    summary="Add comment",
)
async def add_comment(
    request: CommentCreateRequest,
    origin: Annotated[str, Depends(get_client_origin)],
):
    return await comment_service.add_comment(request, origin)


@router.delete("/{comment_id}", response_model=MessageResponse, summary="Delete comment")
async def delete_comment(
    comment_id: CommentID,
    origin: Annotated[str, Depends(get_client_origin)],
    ownership: DeviceOwnership | None = None,
):
    """Allowed for the device that wrote the comment, or its network origin."""

    device_id = ownership.deviceId if ownership else None
    await comment_service.delete_comment(comment_id, device_id, origin)
    return MessageResponse(message="Comment deleted successfully")
