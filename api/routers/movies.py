"""
Movie catalog endpoints.

Reads are public and go through the catalog resolver, which serves the
Supabase store or falls back to Pexels. Local catalog edits require
authentication and a reachable store.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, Response, status
from pydantic import Field

from api.auth import CurrentUser
from api.deps import Resolver, Store, StoreClient
from api.schemas import CamelModel, NonEmpty
from streamia_backend.catalog.resolver import SOURCE_EXTERNAL, CatalogResult
from streamia_backend.errors import NotFoundError
from streamia_backend.repositories.movies import delete_movie, insert_movie, is_internal_id, update_movie

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/movies", tags=["movies"])


# --- Pydantic models ---


class Movie(CamelModel):
    id: str | None = None
    title: str
    description: str | None = None
    category: str | None = None
    cover_image: str | None = None
    video_url: str | None = None
    external_id: str | None = None
    duration: int | None = None
    provider: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class MovieFilters(CamelModel):
    category: str | None = None
    search: str | None = None


class MovieList(CamelModel):
    data: list[Movie]
    source: str
    total: int
    message: str | None = None
    filters: MovieFilters | None = None


class MovieDetail(CamelModel):
    data: Movie
    source: str


class MovieCreate(CamelModel):
    title: NonEmpty
    description: str | None = None
    category: str | None = None
    cover_image: str | None = None
    video_url: str | None = None
    duration: int | None = Field(default=None, ge=0)


class MovieUpdate(CamelModel):
    title: NonEmpty | None = None
    description: str | None = None
    category: str | None = None
    cover_image: str | None = None
    video_url: str | None = None
    duration: int | None = Field(default=None, ge=0)


class MovieEnvelope(CamelModel):
    message: str
    data: Movie


def _list_payload(result: CatalogResult) -> dict:
    return {
        "data": result.data,
        "source": result.source,
        "total": result.total,
        "message": result.message,
        "filters": result.filters,
    }


# --- Read endpoints (public) ---


@router.get("", response_model=MovieList, response_model_exclude_none=True)
def list_movies(store: Store, resolver: Resolver) -> dict:
    """Up to 100 most recent movies."""
    return _list_payload(resolver.list_movies(store))


@router.get("/explore", response_model=MovieList, response_model_exclude_none=True)
def explore_movies(
    store: Store,
    resolver: Resolver,
    category: str | None = Query(default=None, max_length=100),
    search: str | None = Query(default=None, max_length=100),
) -> dict:
    """Case-insensitive substring filters on category and title."""
    return _list_payload(resolver.explore_movies(store, category=category, search=search))


@router.get("/external/popular", response_model=MovieList, response_model_exclude_none=True)
def external_popular(resolver: Resolver) -> dict:
    """Popular Pexels videos, bypassing the store."""
    rows = [item.to_row() for item in resolver.fetch_popular()]
    return {"data": rows, "source": SOURCE_EXTERNAL, "total": len(rows)}


@router.get("/{movie_id}", response_model=MovieDetail, response_model_exclude_none=True)
def get_movie(movie_id: str, store: Store, resolver: Resolver) -> dict:
    """Look up by internal id, then by Pexels id."""
    result = resolver.get_movie_by_id(store, movie_id)
    return {"data": result.data, "source": result.source}


# --- Local catalog administration (auth required) ---


@router.post("", response_model=MovieEnvelope, status_code=status.HTTP_201_CREATED)
def create_movie(payload: MovieCreate, user: CurrentUser, db: StoreClient) -> dict:
    movie = insert_movie(db, {**payload.model_dump(), "provider": "local"})
    logger.info(f"Account {user.account_id} created movie {movie['id']}")
    return {"message": "Movie created successfully", "data": movie}


@router.put("/{movie_id}", response_model=MovieEnvelope)
def edit_movie(movie_id: str, payload: MovieUpdate, user: CurrentUser, db: StoreClient) -> dict:
    if not is_internal_id(movie_id):
        raise NotFoundError("Movie not found")
    movie = update_movie(db, movie_id, payload.model_dump(exclude_unset=True))
    if movie is None:
        raise NotFoundError("Movie not found")
    return {"message": "Movie updated successfully", "data": movie}


@router.delete("/{movie_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_movie(movie_id: str, user: CurrentUser, db: StoreClient) -> Response:
    if not is_internal_id(movie_id) or not delete_movie(db, movie_id):
        raise NotFoundError("Movie not found")
    logger.info(f"Account {user.account_id} deleted movie {movie_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
