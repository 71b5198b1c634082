"""API endpoints for the movie catalog."""

from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status

from cinestream.api.v1.dependencies import movie_list_params, require_admin
from cinestream.models.auth import AdminPrincipal
from cinestream.models.common import MessageResponse, MovieID
from cinestream.models.movie import (
    MovieCreateRequest,
    MovieKeyRepairResponse,
    MovieResponse,
    MovieUpdateRequest,
)
from cinestream.services import media_urls, movie_service

router = APIRouter(prefix="/movies", tags=["Movies"])


@router.get("", response_model=List[MovieResponse], summary="List movies")
async def list_movies(params: movie_list_params):
    """Newest first, with freshly signed media URLs."""

    movies = await movie_service.list_movies(
        limit=params.limit, exclude=params.exclude
    )
    return await media_urls.resolve_movies(movies)


@router.get("/{movie_id}", response_model=MovieResponse, summary="Movie details")
async def get_movie(movie_id: MovieID):
    movie = await movie_service.get_movie_by_id(movie_id)
    if movie is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found"
        )
    return await media_urls.resolve_movie(movie)


@router.post(
    "",
    response_model=MovieResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create movie",
)
async def create_movie(
    request: MovieCreateRequest,
    admin: Annotated[AdminPrincipal, Depends(require_admin)],
):
    movie = await movie_service.create_movie(request)
    return await media_urls.resolve_movie(movie)


@router.put("/{movie_id}", response_model=MovieResponse, summary="Update movie")
async def update_movie(
    movie_id: MovieID,
    request: MovieUpdateRequest,
    admin: Annotated[AdminPrincipal, Depends(require_admin)],
):
    movie = await movie_service.update_movie(movie_id, request)
    return await media_urls.resolve_movie(movie)


@router.delete("/{movie_id}", response_model=MessageResponse, summary="Delete movie")
async def delete_movie(
    movie_id: MovieID,
    admin: Annotated[AdminPrincipal, Depends(require_admin)],
):
    await movie_service.delete_movie(movie_id)
    return MessageResponse(message="Movie deleted successfully")


@router.post(
    "/fix-keys/{movie_id}",
    response_model=MovieKeyRepairResponse,
    summary="Repair malformed media keys",
)
async def fix_movie_keys(
    movie_id: MovieID,
    admin: Annotated[AdminPrincipal, Depends(require_admin)],
):
    """Rewrite media keys damaged by earlier upload code.

    Safe to call repeatedly; a second call reports no fixes.
    """

    movie, fixes = await movie_service.fix_movie_keys(movie_id)
    message = f"Applied {len(fixes)} fix(es)" if fixes else "No malformed keys found"
    return MovieKeyRepairResponse(
        message=message,
        fixes=fixes,
        movie=await media_urls.resolve_movie(movie),
    )
