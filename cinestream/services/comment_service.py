"""Service layer for managing movie comments."""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import uuid4

from fastapi import HTTPException, status

from cinestream.core.config import settings
from cinestream.db.astra_client import AstraDBCollection, get_collection
from cinestream.models.comment import Comment, CommentCreateRequest
from cinestream.models.common import CommentID, DeviceID, MovieID, utc_now_iso
from cinestream.utils.net import UNKNOWN_ORIGIN

logger = logging.getLogger(__name__)

COMMENTS_COLLECTION_NAME: str = settings.COMMENTS_COLLECTION


async def add_comment(
    request: CommentCreateRequest,
    origin: str,
    db_table: Optional[AstraDBCollection] = None,
) -> Comment:
    """Store a new comment.

    Without a ``deviceId`` the comment is owned by the caller's network
    *origin*.
    """

    if db_table is None:
        db_table = await get_collection(COMMENTS_COLLECTION_NAME)

    comment_doc = {
        "_id": str(uuid4()),
        "movieId": request.movieId,
        "deviceId": request.deviceId or origin,
        "nickname": request.nickname,
        "content": request.content,
        "createdAt": utc_now_iso(),
    }
    await db_table.insert_one(document=comment_doc)
    return Comment.model_validate(comment_doc)


async def list_comments_for_movie(
    movie_id: MovieID, db_table: Optional[AstraDBCollection] = None
) -> List[Comment]:
    if db_table is None:
        db_table = await get_collection(COMMENTS_COLLECTION_NAME)

    cursor = db_table.find(filter={"movieId": movie_id}, sort={"createdAt": -1})
    docs = await cursor.to_list()
    return [Comment.model_validate(d) for d in docs]


async def delete_comment(
    comment_id: CommentID,
    device_id: Optional[DeviceID],
    origin: str,
    db_table: Optional[AstraDBCollection] = None,
) -> None:
    """Delete a comment when the caller's device or network origin owns it."""

    if db_table is None:
        db_table = await get_collection(COMMENTS_COLLECTION_NAME)

    existing = await db_table.find_one(filter={"_id": comment_id})
    if existing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found"
        )

    owner = existing.get("deviceId")
    claims = {device_id, origin} - {None, UNKNOWN_ORIGIN}
    if owner in (None, UNKNOWN_ORIGIN) or owner not in claims:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own comments",
        )

    await db_table.delete_one(filter={"_id": comment_id})
