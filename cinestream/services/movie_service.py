"""Business logic for the movie catalog.

Operations return :class:`~cinestream.models.movie.Movie` objects holding
storage keys; the HTTP layer passes them through
:mod:`cinestream.services.media_urls` before responding.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from fastapi import HTTPException, status
from pydantic import ValidationError

from cinestream.core.config import settings
from cinestream.db.astra_client import AstraDBCollection, get_collection
from cinestream.models.common import MovieID, utc_now_iso
from cinestream.models.movie import (
    Movie,
    MovieCreateRequest,
    MovieUpdateRequest,
    normalize_media_keys,
)
from cinestream.utils.key_repair import repair_movie_keys

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MOVIES_COLLECTION_NAME: str = settings.MOVIES_COLLECTION

# Response-only fields that older documents may still carry.
_TRANSIENT_URL_FIELDS: Dict[str, str] = {"posterUrl": "", "thumbnailUrl": ""}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found"
    )


def _documents_to_movies(docs: List[Dict[str, Any]]) -> List[Movie]:
    movies: List[Movie] = []
    for doc in docs:
        try:
            movies.append(Movie.from_document(doc))
        except ValidationError as exc:
            logger.warning(
                "Skipping malformed movie document %s: %s", doc.get("_id"), exc
            )
    return movies


# ---------------------------------------------------------------------------
# Service Operations
# ---------------------------------------------------------------------------


async def list_movies(
    limit: Optional[int] = None,
    exclude: Optional[MovieID] = None,
    db_table: Optional[AstraDBCollection] = None,
) -> List[Movie]:
    """Return movies newest first, optionally omitting one id."""

    if db_table is None:
        db_table = await get_collection(MOVIES_COLLECTION_NAME)

    query_filter: Dict[str, Any] = {}
    if exclude:
        query_filter["_id"] = {"$ne": exclude}

    cursor = db_table.find(
        filter=query_filter,
        sort={"createdAt": -1},
        limit=limit or settings.DEFAULT_LIST_LIMIT,
    )
    docs = await cursor.to_list()
    return _documents_to_movies(docs)


async def get_movie_by_id(
    movie_id: MovieID, db_table: Optional[AstraDBCollection] = None
) -> Optional[Movie]:
    if db_table is None:
        db_table = await get_collection(MOVIES_COLLECTION_NAME)

    doc = await db_table.find_one(filter={"_id": movie_id})
    if doc is None:
        return None
    return Movie.from_document(doc)


async def create_movie(
    request: MovieCreateRequest, db_table: Optional[AstraDBCollection] = None
) -> Movie:
    """Persist a new movie; media keys are stored exactly as supplied."""

    if db_table is None:
        db_table = await get_collection(MOVIES_COLLECTION_NAME)

    now = utc_now_iso()
    document: Dict[str, Any] = request.model_dump(mode="json")
    document.update(
        {
            "_id": str(uuid4()),
            "views": 0,
            "reviewCount": 0,
            "createdAt": now,
            "updatedAt": now,
        }
    )
    await db_table.insert_one(document=document)
    logger.info("Created movie %s (%s)", document["_id"], request.title)
    return Movie.from_document(document)


async def update_movie(
    movie_id: MovieID,
    request: MovieUpdateRequest,
    db_table: Optional[AstraDBCollection] = None,
) -> Movie:
    """Apply a partial update; only fields present in the payload change."""

    if db_table is None:
        db_table = await get_collection(MOVIES_COLLECTION_NAME)

    existing = await db_table.find_one(filter={"_id": movie_id})
    if existing is None:
        raise _not_found()

    changes = request.model_dump(mode="json", exclude_unset=True)
    changes["updatedAt"] = utc_now_iso()

    updated = {
        k: v for k, v in existing.items() if k not in _TRANSIENT_URL_FIELDS
    }
    updated.update(changes)
    # The merged document must still be a valid movie before it is written.
    try:
        movie = Movie.from_document(updated)
    except ValidationError as exc:
        logger.info("Rejected update of movie %s: %s", movie_id, exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Update would leave the movie invalid",
        ) from exc

    await db_table.update_one(
        filter={"_id": movie_id},
        update={"$set": changes, "$unset": dict(_TRANSIENT_URL_FIELDS)},
    )
    return movie


async def delete_movie(
    movie_id: MovieID, db_table: Optional[AstraDBCollection] = None
) -> None:
    """Hard-delete a movie.  Its reviews and comments are left in place."""

    if db_table is None:
        db_table = await get_collection(MOVIES_COLLECTION_NAME)

    existing = await db_table.find_one(filter={"_id": movie_id}, projection={"_id": 1})
    if existing is None:
        raise _not_found()

    await db_table.delete_one(filter={"_id": movie_id})
    logger.info("Deleted movie %s", movie_id)


async def fix_movie_keys(
    movie_id: MovieID, db_table: Optional[AstraDBCollection] = None
) -> Tuple[Movie, List[str]]:
    """Repair malformed media keys on one movie.

    Returns the updated movie and the list of fixes applied (empty when the
    keys were already well-formed).  Transient URL fields are always unset.
    """

    if db_table is None:
        db_table = await get_collection(MOVIES_COLLECTION_NAME)

    existing = await db_table.find_one(filter={"_id": movie_id})
    if existing is None:
        raise _not_found()

    changes, fixes = repair_movie_keys(normalize_media_keys(existing))
    update: Dict[str, Any] = {"$unset": dict(_TRANSIENT_URL_FIELDS)}
    if changes:
        changes["updatedAt"] = utc_now_iso()
        update["$set"] = changes

    await db_table.update_one(filter={"_id": movie_id}, update=update)
    if fixes:
        logger.info("Repaired %d key(s) on movie %s", len(fixes), movie_id)

    repaired = {
        k: v for k, v in existing.items() if k not in _TRANSIENT_URL_FIELDS
    }
    repaired.update(changes)
    return Movie.from_document(repaired), fixes
