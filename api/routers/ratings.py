"""
Star ratings. One rating per (account, movie); resubmitting overwrites it.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from pydantic import AliasChoices, Field
from supabase import Client

from api.auth import CurrentUser
from api.deps import StoreClient
from api.schemas import CamelModel, NonEmpty
from streamia_backend.db.store import is_uuid
from streamia_backend.errors import ConflictError, ForbiddenError, NotFoundError
from streamia_backend.repositories.ratings import (
    delete_rating,
    find_rating_by_id,
    list_rating_values_for_movie,
    list_ratings_for_account,
    update_rating_value,
    upsert_rating,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ratings", tags=["ratings"])


# --- Pydantic models ---


class Rating(CamelModel):
    id: str
    account_id: str
    movie_id: str
    value: int
    created_at: str | None = None
    updated_at: str | None = None


class RatingSubmit(CamelModel):
    movie_id: NonEmpty
    value: int = Field(ge=1, le=5, validation_alias=AliasChoices("rating", "value"))


class RatingUpdate(CamelModel):
    value: int = Field(ge=1, le=5, validation_alias=AliasChoices("rating", "value"))


class RatingEnvelope(CamelModel):
    message: str
    data: Rating


class RatingSummary(CamelModel):
    movie_id: str
    average: float
    count: int


def _get_owned_rating(db: Client, rating_id: str, account_id: str, action: str) -> dict:
    rating = find_rating_by_id(db, rating_id) if is_uuid(rating_id) else None
    if rating is None:
        raise NotFoundError("Rating not found")
    if str(rating["account_id"]) != account_id:
        raise ForbiddenError(f"Not authorized to {action} this rating")
    return rating


# --- Endpoints ---


@router.post("", response_model=RatingEnvelope, status_code=status.HTTP_201_CREATED)
def submit_rating(payload: RatingSubmit, response: Response, user: CurrentUser, db: StoreClient) -> dict:
    """Create the caller's rating for a movie (201) or update it (200)."""
    try:
        rating, created = upsert_rating(db, account_id=user.account_id, movie_id=payload.movie_id, value=payload.value)
    except ConflictError:
        # Lost a race with a concurrent first submission; the row now exists.
        rating, created = upsert_rating(db, account_id=user.account_id, movie_id=payload.movie_id, value=payload.value)

    if not created:
        response.status_code = status.HTTP_200_OK
        return {"message": "Rating updated", "data": rating}
    return {"message": "Rating saved", "data": rating}


@router.get("", response_model=list[Rating])
def get_my_ratings(user: CurrentUser, db: StoreClient) -> list[dict]:
    return list_ratings_for_account(db, user.account_id)


@router.get("/movie/{movie_id}", response_model=RatingSummary)
def get_movie_rating_summary(movie_id: str, user: CurrentUser, db: StoreClient) -> dict:
    values = list_rating_values_for_movie(db, movie_id)
    average = round(sum(values) / len(values), 2) if values else 0.0
    return {"movie_id": movie_id, "average": average, "count": len(values)}


@router.put("/{rating_id}", response_model=RatingEnvelope)
def edit_rating(rating_id: str, payload: RatingUpdate, user: CurrentUser, db: StoreClient) -> dict:
    rating = _get_owned_rating(db, rating_id, user.account_id, "update")
    updated = update_rating_value(db, rating["id"], payload.value)
    if updated is None:
        raise NotFoundError("Rating not found")
    return {"message": "Rating updated", "data": updated}


@router.delete("/{rating_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_rating(rating_id: str, user: CurrentUser, db: StoreClient) -> Response:
    rating = _get_owned_rating(db, rating_id, user.account_id, "delete")
    delete_rating(db, rating["id"])
    return Response(status_code=status.HTTP_204_NO_CONTENT)
