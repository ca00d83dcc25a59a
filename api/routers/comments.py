"""
Movie comments. Listing is public; writes require a session and only the
author may edit or delete.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Response, status
from pydantic import StringConstraints

from api.auth import CurrentUser
from api.deps import StoreClient
from api.schemas import CamelModel, NonEmpty
from streamia_backend.db.store import is_uuid
from streamia_backend.errors import NotFoundError
from streamia_backend.repositories.comments import (
    delete_comment,
    insert_comment,
    list_comments_for_movie,
    update_comment_text,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/comments", tags=["comments"])

NOT_FOUND_MESSAGE = "Comment not found or not authorized"

CommentText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]


# --- Pydantic models ---


class CommentAuthor(CamelModel):
    id: str
    first_name: str | None = None
    last_name: str | None = None


class Comment(CamelModel):
    id: str
    account_id: str
    movie_id: str
    text: str
    created_at: str | None = None
    updated_at: str | None = None
    author: CommentAuthor | None = None


class CommentCreate(CamelModel):
    movie_id: NonEmpty
    text: CommentText


class CommentUpdate(CamelModel):
    text: CommentText


class CommentEnvelope(CamelModel):
    message: str
    data: Comment


# --- Endpoints ---


@router.post("", response_model=CommentEnvelope, status_code=status.HTTP_201_CREATED)
def add_comment(payload: CommentCreate, user: CurrentUser, db: StoreClient) -> dict:
    comment = insert_comment(db, account_id=user.account_id, movie_id=payload.movie_id, text=payload.text)
    return {"message": "Comment added", "data": comment}


@router.get("/movie/{movie_id}", response_model=list[Comment])
def get_movie_comments(movie_id: str, db: StoreClient) -> list[dict]:
    """Newest first. Public endpoint."""
    return list_comments_for_movie(db, movie_id)


@router.put("/{comment_id}", response_model=CommentEnvelope)
def edit_comment(comment_id: str, payload: CommentUpdate, user: CurrentUser, db: StoreClient) -> dict:
    comment = update_comment_text(db, comment_id, user.account_id, payload.text) if is_uuid(comment_id) else None
    if comment is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return {"message": "Comment updated", "data": comment}


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_comment(comment_id: str, user: CurrentUser, db: StoreClient) -> Response:
    if not is_uuid(comment_id) or not delete_comment(db, comment_id, user.account_id):
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
