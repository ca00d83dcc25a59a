from __future__ import annotations

from typing import Any
from uuid import UUID

from supabase import Client

from streamia_backend.db.store import execute, first_or_none
from streamia_backend.utils.clock import now_utc_iso

TABLE = "ratings"


def find_rating(db: Client, account_id: UUID | str, movie_id: str) -> dict[str, Any] | None:
    rows = execute(
        db.table(TABLE).select("*").eq("account_id", str(account_id)).eq("movie_id", movie_id).limit(1),
        "finding rating",
    )
    return first_or_none(rows)


def find_rating_by_id(db: Client, rating_id: UUID | str) -> dict[str, Any] | None:
    rows = execute(db.table(TABLE).select("*").eq("id", str(rating_id)).limit(1), "finding rating by id")
    return first_or_none(rows)


def list_ratings_for_account(db: Client, account_id: UUID | str) -> list[dict[str, Any]]:
    return execute(
        db.table(TABLE).select("*").eq("account_id", str(account_id)).order("created_at", desc=True),
        "listing ratings",
    )


def list_rating_values_for_movie(db: Client, movie_id: str) -> list[int]:
    rows = execute(db.table(TABLE).select("value").eq("movie_id", movie_id), "listing movie ratings")
    return [int(row["value"]) for row in rows if row.get("value") is not None]


def insert_rating(db: Client, *, account_id: UUID | str, movie_id: str, value: int) -> dict[str, Any]:
    now = now_utc_iso()
    payload = {
        "account_id": str(account_id),
        "movie_id": movie_id,
        "value": value,
        "created_at": now,
        "updated_at": now,
    }
    rows = execute(db.table(TABLE).insert(payload), "inserting rating")
    if not rows:
        raise RuntimeError("Supabase insert returned no data for rating.")
    return rows[0]


def update_rating_value(db: Client, rating_id: UUID | str, value: int) -> dict[str, Any] | None:
    rows = execute(
        db.table(TABLE).update({"value": value, "updated_at": now_utc_iso()}).eq("id", str(rating_id)),
        "updating rating",
    )
    return first_or_none(rows)


def upsert_rating(db: Client, *, account_id: UUID | str, movie_id: str, value: int) -> tuple[dict[str, Any], bool]:
    """
    Create the (account, movie) rating or overwrite its value.

    Returns `(row, created)`. Two concurrent first submissions can still race;
    the loser gets a `ConflictError` from the unique index.
    """
    existing = find_rating(db, account_id, movie_id)
    if existing is not None:
        updated = update_rating_value(db, existing["id"], value)
        return (updated or {**existing, "value": value}), False
    return insert_rating(db, account_id=account_id, movie_id=movie_id, value=value), True


def delete_rating(db: Client, rating_id: UUID | str) -> bool:
    rows = execute(db.table(TABLE).delete().eq("id", str(rating_id)), "deleting rating")
    return bool(rows)
