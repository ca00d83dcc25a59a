from __future__ import annotations

from typing import Any
from uuid import UUID

from supabase import Client

from streamia_backend.db.store import execute, first_or_none
from streamia_backend.utils.clock import now_utc_iso

TABLE = "favorites"


def list_favorites(db: Client, account_id: UUID | str) -> list[dict[str, Any]]:
    return execute(
        db.table(TABLE).select("*").eq("account_id", str(account_id)).order("created_at", desc=True),
        "listing favorites",
    )


def find_favorite(db: Client, account_id: UUID | str, movie_id: str) -> dict[str, Any] | None:
    rows = execute(
        db.table(TABLE).select("*").eq("account_id", str(account_id)).eq("movie_id", movie_id).limit(1),
        "finding favorite",
    )
    return first_or_none(rows)


def insert_favorite(
    db: Client,
    *,
    account_id: UUID | str,
    movie_id: str,
    title: str,
    poster: str,
    note: str = "",
) -> dict[str, Any]:
    now = now_utc_iso()
    payload = {
        "account_id": str(account_id),
        "movie_id": movie_id,
        "title": title,
        "poster": poster,
        "note": note,
        "created_at": now,
        "updated_at": now,
    }
    rows = execute(db.table(TABLE).insert(payload), "inserting favorite")
    if not rows:
        raise RuntimeError("Supabase insert returned no data for favorite.")
    return rows[0]


def update_favorite_note(
    db: Client,
    favorite_id: UUID | str,
    account_id: UUID | str,
    note: str,
) -> dict[str, Any] | None:
    """Owner-scoped: returns None when the favorite is missing or belongs to someone else."""
    rows = execute(
        db.table(TABLE)
        .update({"note": note, "updated_at": now_utc_iso()})
        .eq("id", str(favorite_id))
        .eq("account_id", str(account_id)),
        "updating favorite note",
    )
    return first_or_none(rows)


def delete_favorite_by_movie(db: Client, account_id: UUID | str, movie_id: str) -> dict[str, Any] | None:
    rows = execute(
        db.table(TABLE).delete().eq("account_id", str(account_id)).eq("movie_id", movie_id),
        "deleting favorite",
    )
    return first_or_none(rows)
