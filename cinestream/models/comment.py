"""Pydantic models for movie comments."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from cinestream.models.common import CommentID, DeviceID, MovieID


class CommentBase(BaseModel):
    """Fields common to comment creation and storage."""

    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=1000)
    nickname: str = Field(default="Anonymous", max_length=50)


class CommentCreateRequest(CommentBase):
    """Payload for creating a new comment.

    ``deviceId`` is optional; without it the comment is owned by the
    caller's network origin.
    """

    movieId: MovieID = Field(..., min_length=1)
    deviceId: Optional[DeviceID] = None


class Comment(CommentBase):
    """Persistent representation stored in DB and returned via API."""

    id: CommentID = Field(..., validation_alias=AliasChoices("_id", "id"))
    movieId: MovieID
    deviceId: DeviceID
    createdAt: Optional[datetime] = None


class DeviceOwnership(BaseModel):
    """Body of ``DELETE /comments/{id}`` and ``DELETE /reviews/{id}``."""

    deviceId: Optional[DeviceID] = None


__all__ = [
    "CommentCreateRequest",
    "Comment",
    "DeviceOwnership",
]
