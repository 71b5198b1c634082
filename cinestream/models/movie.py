"""Pydantic models representing the Movie catalog entity.

Movies persist object-storage *keys* for their media (``videoUrls`` values,
``posterKey``, ``thumbnailKey``).  URLs only ever appear on
:class:`MovieResponse`, filled in per request by
:mod:`cinestream.services.media_urls`.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Mapping, Optional
from urllib.parse import unquote, urlparse

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    model_validator,
)

from cinestream.core.config import settings
from cinestream.models.common import MovieID

GenreName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)
]

# The only fields a partial update may set to null.
_NULLABLE_MOVIE_FIELDS = frozenset({"posterKey", "thumbnailKey"})


# ---------------------------------------------------------------------------
# Legacy documents
# ---------------------------------------------------------------------------


def legacy_url_to_key(value: Any) -> Any:
    """Turn an absolute object URL stored by old schema versions into a key.

    ``https://bucket.s3.amazonaws.com/video/1.mp4?X-Amz-...`` -> ``video/1.mp4``.
    Path-style URLs that start with the bucket name drop that segment too.
    Anything that is not an http(s) URL is returned unchanged.
    """

    if not isinstance(value, str) or not value.startswith(("http://", "https://")):
        return value
    path = unquote(urlparse(value).path).lstrip("/")
    bucket_prefix = f"{settings.AWS_BUCKET_NAME}/"
    if path.startswith(bucket_prefix):
        path = path[len(bucket_prefix) :]
    return path


def normalize_media_keys(doc: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of *doc* with every media field holding a key rather than a URL.

    A ``None`` quality entry becomes ``""`` (no rendition uploaded).
    """

    data = dict(doc)
    videos = data.get("videoUrls")
    if isinstance(videos, dict):
        data["videoUrls"] = {
            quality: "" if value is None else legacy_url_to_key(value)
            for quality, value in videos.items()
        }
    for field in ("posterKey", "thumbnailKey"):
        if field in data:
            data[field] = legacy_url_to_key(data[field])
    return data


# ---------------------------------------------------------------------------
# Base Models
# ---------------------------------------------------------------------------


class MovieBase(BaseModel):
    """Fields an administrator supplies when cataloguing a movie."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=1000)
    director: str = Field(..., min_length=1, max_length=100)
    language: str = Field(default="English", max_length=50)
    rating: float = Field(default=0, ge=0, le=10)
    releaseDate: date
    genre: List[GenreName] = Field(..., min_length=1)
    cast: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    videoUrls: Dict[str, str] = Field(
        default_factory=dict,
        description="Quality label (e.g. 720p) -> object storage key.",
    )
    posterKey: Optional[str] = None
    thumbnailKey: Optional[str] = None
    isFeatured: bool = False


class MovieCreateRequest(MovieBase):
    """Payload for ``POST /movies``.

    ``posterUrl``/``thumbnailUrl`` sent by clients are dropped: unknown
    fields are ignored and URLs are never persisted.
    """

    pass


class MovieUpdateRequest(BaseModel):
    """Partial update; only fields present in the payload are written."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    director: Optional[str] = Field(default=None, min_length=1, max_length=100)
    language: Optional[str] = Field(default=None, max_length=50)
    rating: Optional[float] = Field(default=None, ge=0, le=10)
    releaseDate: Optional[date] = None
    genre: Optional[List[GenreName]] = Field(default=None, min_length=1)
    cast: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    videoUrls: Optional[Dict[str, str]] = None
    posterKey: Optional[str] = None
    thumbnailKey: Optional[str] = None
    isFeatured: Optional[bool] = None

    @model_validator(mode="after")
    def _reject_null_fields(self) -> "MovieUpdateRequest":
        nulled = sorted(
            name
            for name in self.model_fields_set - _NULLABLE_MOVIE_FIELDS
            if getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self


class Movie(MovieBase):
    """Canonical representation of a movie document."""

    id: MovieID = Field(..., validation_alias=AliasChoices("_id", "id"))
    views: int = 0
    reviewCount: int = 0
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Movie":
        """Validate a stored document, normalising legacy URL-valued keys."""

        return cls.model_validate(normalize_media_keys(doc))


class MovieResponse(Movie):
    """Movie as returned to clients, with freshly signed media URLs.

    ``videoUrls`` values are signed URLs, ``""`` when no key is stored for
    that quality, or ``None`` when signing the stored key failed.
    """

    videoUrls: Dict[str, Optional[str]] = Field(default_factory=dict)
    posterUrl: Optional[str] = None
    thumbnailUrl: Optional[str] = None


class MovieKeyRepairResponse(BaseModel):
    message: str
    fixes: List[str]
    movie: MovieResponse


__all__ = [
    "GenreName",
    "legacy_url_to_key",
    "normalize_media_keys",
    "MovieBase",
    "MovieCreateRequest",
    "MovieUpdateRequest",
    "Movie",
    "MovieResponse",
    "MovieKeyRepairResponse",
]
