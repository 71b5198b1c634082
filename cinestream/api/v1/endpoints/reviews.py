"""API endpoints for movie reviews."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, status

from cinestream.models.comment import DeviceOwnership
from cinestream.models.common import MessageResponse, MovieID, ReviewID
from cinestream.models.review import Review, ReviewCreateOrUpdateRequest
from cinestream.services import review_service

router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.get("/movie/{movie_id}", response_model=List[Review], summary="List reviews")
async def list_reviews(movie_id: MovieID):
    return await review_service.list_reviews_for_movie(movie_id)


@router.post(
    "",
    response_model=Review,
    status_code=status.HTTP_201_CREATED,
    summary="Create or replace review",
)
async def submit_review(request: ReviewCreateOrUpdateRequest):
    """One review per device and movie; submitting again replaces it."""

    return await review_service.submit_review(request)


@router.delete("/{review_id}", response_model=MessageResponse, summary="Delete review")
async def delete_review(review_id: ReviewID, ownership: DeviceOwnership | None = None):
    device_id = ownership.deviceId if ownership else None
    await review_service.delete_review(review_id, device_id)
    return MessageResponse(message="Review deleted successfully")
