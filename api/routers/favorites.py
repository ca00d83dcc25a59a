"""
Favorites endpoints. Every route is scoped to the authenticated account.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from pydantic import Field

from api.auth import CurrentUser
from api.deps import StoreClient
from api.schemas import CamelModel, NonEmpty
from streamia_backend.db.store import is_uuid
from streamia_backend.errors import ConflictError, NotFoundError
from streamia_backend.repositories.favorites import (
    delete_favorite_by_movie,
    find_favorite,
    insert_favorite,
    list_favorites,
    update_favorite_note,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/favorites", tags=["favorites"])

DUPLICATE_MESSAGE = "This movie is already in your favorites"


# --- Pydantic models ---


class Favorite(CamelModel):
    id: str
    account_id: str
    movie_id: str
    title: str
    poster: str = ""
    note: str = ""
    created_at: str | None = None
    updated_at: str | None = None


class FavoriteCreate(CamelModel):
    movie_id: NonEmpty
    title: NonEmpty
    poster: str = ""
    note: str = Field(default="", max_length=500)


class FavoriteNoteUpdate(CamelModel):
    note: str = Field(max_length=500)


class FavoriteEnvelope(CamelModel):
    message: str
    data: Favorite


# --- Endpoints ---


@router.get("", response_model=list[Favorite])
def get_favorites(user: CurrentUser, db: StoreClient) -> list[dict]:
    return list_favorites(db, user.account_id)


@router.post("", response_model=FavoriteEnvelope, status_code=status.HTTP_201_CREATED)
def add_favorite(payload: FavoriteCreate, user: CurrentUser, db: StoreClient) -> dict:
    if find_favorite(db, user.account_id, payload.movie_id) is not None:
        raise ConflictError(DUPLICATE_MESSAGE)

    try:
        favorite = insert_favorite(
            db,
            account_id=user.account_id,
            movie_id=payload.movie_id,
            title=payload.title,
            poster=payload.poster,
            note=payload.note,
        )
    except ConflictError:
        raise ConflictError(DUPLICATE_MESSAGE) from None

    return {"message": "Added to favorites", "data": favorite}


@router.put("/{favorite_id}", response_model=FavoriteEnvelope)
def edit_favorite_note(favorite_id: str, payload: FavoriteNoteUpdate, user: CurrentUser, db: StoreClient) -> dict:
    favorite = None
    if is_uuid(favorite_id):
        favorite = update_favorite_note(db, favorite_id, user.account_id, payload.note)
    if favorite is None:
        raise NotFoundError("Favorite not found")
    return {"message": "Favorite updated", "data": favorite}


@router.delete("/{movie_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_favorite(movie_id: str, user: CurrentUser, db: StoreClient) -> Response:
    """Keyed by movie id, since the client rarely holds the favorite's own id."""
    if delete_favorite_by_movie(db, user.account_id, movie_id) is None:
        raise NotFoundError("Favorite not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
