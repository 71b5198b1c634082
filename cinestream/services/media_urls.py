"""Freshness resolver: exchange stored media keys for signed URLs.

Every read of a movie goes through :func:`resolve_movie`.  Each key is
signed independently:

* blank or missing key  -> ``""`` for a video quality, ``None`` for images
* signing succeeded     -> the signed URL
* signing failed        -> ``None``; the failure is logged and counted

A failure for one key never affects the other keys of the same movie, nor
other movies of a list.  Signed URLs are produced per request and never
cached or written back.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from cinestream.metrics import SIGNED_URL_FAILURES_TOTAL
from cinestream.models.movie import Movie, MovieResponse
from cinestream.storage.s3_client import ObjectStore, S3StorageError, get_object_store

logger = logging.getLogger(__name__)

__all__ = ["sign_key", "resolve_movie", "resolve_movies"]


def _is_blank(key: Optional[str]) -> bool:
    return key is None or not str(key).strip()


async def sign_key(store: ObjectStore, key: str, *, asset: str) -> Optional[str]:
    """Sign *key*, returning ``None`` instead of raising on failure."""

    try:
        return await asyncio.to_thread(store.presigned_get, key)
    except S3StorageError as exc:
        SIGNED_URL_FAILURES_TOTAL.labels(asset=asset).inc()
        logger.warning("Could not sign %s key %r: %s", asset, key, exc)
        return None


async def _sign_optional(
    store: ObjectStore, key: Optional[str], *, asset: str
) -> Optional[str]:
    if _is_blank(key):
        return None
    return await sign_key(store, key, asset=asset)


async def _sign_video(store: ObjectStore, key: Optional[str]) -> Optional[str]:
    if _is_blank(key):
        return ""
    return await sign_key(store, key, asset="video")


async def resolve_movie(
    movie: Movie, store: Optional[ObjectStore] = None
) -> MovieResponse:
    """Return *movie* with every stored key replaced by a fresh signed URL."""

    if store is None:
        store = get_object_store()

    qualities = list(movie.videoUrls.keys())
    results = await asyncio.gather(
        *(_sign_video(store, movie.videoUrls[q]) for q in qualities),
        _sign_optional(store, movie.posterKey, asset="poster"),
        _sign_optional(store, movie.thumbnailKey, asset="thumbnail"),
    )
    video_urls = dict(zip(qualities, results[: len(qualities)]))
    poster_url, thumbnail_url = results[len(qualities) :]

    data = movie.model_dump()
    data.update(
        videoUrls=video_urls,
        posterUrl=poster_url,
        thumbnailUrl=thumbnail_url,
    )
    return MovieResponse.model_validate(data)


async def resolve_movies(
    movies: Sequence[Movie], store: Optional[ObjectStore] = None
) -> List[MovieResponse]:
    """Resolve a list of movies; each movie is resolved on its own."""

    if store is None:
        store = get_object_store()
    return list(await asyncio.gather(*(resolve_movie(m, store) for m in movies)))
