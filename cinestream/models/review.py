"""Pydantic models for movie reviews."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from cinestream.models.common import DeviceID, MovieID, ReviewID

RatingValue = int


class ReviewBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    rating: RatingValue = Field(..., ge=1, le=10, description="Rating value 1-10")
    nickname: str = Field(default="Anonymous", max_length=50)
    comment: str = Field(default="", max_length=1000)


class ReviewCreateOrUpdateRequest(ReviewBase):
    """Payload for ``POST /reviews``; upserted on ``(movieId, deviceId)``."""

    movieId: MovieID = Field(..., min_length=1)
    deviceId: DeviceID = Field(..., min_length=1)


class Review(ReviewBase):
    """Canonical review representation stored in the DB."""

    id: ReviewID = Field(..., validation_alias=AliasChoices("_id", "id"))
    movieId: MovieID
    deviceId: DeviceID
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


__all__ = [
    "RatingValue",
    "ReviewCreateOrUpdateRequest",
    "Review",
]
