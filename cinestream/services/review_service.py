"""Service logic for movie reviews.

A device holds at most one review per movie: submitting again replaces the
previous rating.  After every write the movie's ``rating`` is recomputed as
the mean of its current reviews.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import HTTPException, status

from cinestream.core.config import settings
from cinestream.db.astra_client import AstraDBCollection, get_collection
from cinestream.models.common import DeviceID, MovieID, ReviewID, utc_now_iso
from cinestream.models.review import Review, ReviewCreateOrUpdateRequest
from cinestream.services import movie_service

logger = logging.getLogger(__name__)

REVIEWS_COLLECTION_NAME: str = settings.REVIEWS_COLLECTION


async def _update_movie_aggregate_rating(
    movie_id: MovieID,
    reviews_db_table: AstraDBCollection,
    movies_db_table: AstraDBCollection,
) -> None:
    """Recalculate the average rating and review count for the given movie."""

    cursor = reviews_db_table.find(
        filter={"movieId": movie_id}, projection={"rating": 1}
    )
    docs: List[Dict[str, Any]] = await cursor.to_list()

    values = [float(d["rating"]) for d in docs if d.get("rating") is not None]
    total = len(values)
    average = round(sum(values) / total, 2) if total else 0

    await movies_db_table.update_one(
        filter={"_id": movie_id},
        update={"$set": {"rating": average, "reviewCount": total}},
    )


async def _require_movie(
    movie_id: MovieID, movies_db_table: AstraDBCollection
) -> None:
    movie = await movie_service.get_movie_by_id(movie_id, db_table=movies_db_table)
    if movie is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found"
        )


async def submit_review(
    request: ReviewCreateOrUpdateRequest,
    db_table: Optional[AstraDBCollection] = None,
    movies_db_table: Optional[AstraDBCollection] = None,
) -> Review:
    """Create or replace the review of ``(movieId, deviceId)``."""

    if db_table is None:
        db_table = await get_collection(REVIEWS_COLLECTION_NAME)
    if movies_db_table is None:
        movies_db_table = await get_collection(movie_service.MOVIES_COLLECTION_NAME)

    await _require_movie(request.movieId, movies_db_table)

    now = utc_now_iso()
    review_filter = {"movieId": request.movieId, "deviceId": request.deviceId}
    fields = {
        "rating": request.rating,
        "nickname": request.nickname,
        "comment": request.comment,
        "updatedAt": now,
    }
    existing_doc = await db_table.find_one(filter=review_filter)

    if existing_doc:
        await db_table.update_one(filter=review_filter, update={"$set": fields})
        review_doc = {**existing_doc, **fields}
    else:
        review_doc = {
            "_id": str(uuid4()),
            **review_filter,
            **fields,
            "createdAt": now,
        }
        await db_table.insert_one(document=review_doc)

    await _update_movie_aggregate_rating(request.movieId, db_table, movies_db_table)
    return Review.model_validate(review_doc)


async def list_reviews_for_movie(
    movie_id: MovieID, db_table: Optional[AstraDBCollection] = None
) -> List[Review]:
    if db_table is None:
        db_table = await get_collection(REVIEWS_COLLECTION_NAME)

    cursor = db_table.find(filter={"movieId": movie_id}, sort={"createdAt": -1})
    docs = await cursor.to_list()
    return [Review.model_validate(d) for d in docs]


async def delete_review(
    review_id: ReviewID,
    device_id: Optional[DeviceID],
    db_table: Optional[AstraDBCollection] = None,
    movies_db_table: Optional[AstraDBCollection] = None,
) -> None:
    """Delete a review owned by *device_id* and refresh the movie rating."""

    if db_table is None:
        db_table = await get_collection(REVIEWS_COLLECTION_NAME)

    existing = await db_table.find_one(filter={"_id": review_id})
    if existing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Review not found"
        )
    if not device_id or existing.get("deviceId") != device_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own reviews",
        )

    await db_table.delete_one(filter={"_id": review_id})

    if movies_db_table is None:
        movies_db_table = await get_collection(movie_service.MOVIES_COLLECTION_NAME)
    await _update_movie_aggregate_rating(
        existing["movieId"], db_table, movies_db_table
    )
