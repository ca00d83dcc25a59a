from __future__ import annotations

from typing import Any, Mapping
from uuid import UUID

from supabase import Client

from streamia_backend.db.store import execute, first_or_none, is_uuid
from streamia_backend.utils.clock import now_utc_iso

TABLE = "movies"
DEFAULT_LIMIT = 100

# Columns an admin edit may touch; provenance fields stay fixed.
EDITABLE_COLUMNS = ("title", "description", "category", "cover_image", "video_url", "duration")


def is_internal_id(value: str) -> bool:
    """True when `value` is shaped like a primary key of `movies` (a UUID)."""
    return is_uuid(value)


def _ilike_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def list_recent_movies(db: Client, *, limit: int = DEFAULT_LIMIT) -> list[dict[str, Any]]:
    return execute(
        db.table(TABLE).select("*").order("created_at", desc=True).limit(limit),
        "listing movies",
    )


def has_any_movie(db: Client) -> bool:
    rows = execute(db.table(TABLE).select("id").limit(1), "checking catalog contents")
    return bool(rows)


def search_movies(
    db: Client,
    *,
    category: str | None = None,
    search: str | None = None,
    limit: int = DEFAULT_LIMIT,
) -> list[dict[str, Any]]:
    query = db.table(TABLE).select("*")
    if category:
        query = query.ilike("category", _ilike_pattern(category))
    if search:
        query = query.ilike("title", _ilike_pattern(search))
    return execute(query.order("created_at", desc=True).limit(limit), "searching movies")


def find_movie_by_id(db: Client, movie_id: UUID | str) -> dict[str, Any] | None:
    rows = execute(db.table(TABLE).select("*").eq("id", str(movie_id)).limit(1), "finding movie by id")
    return first_or_none(rows)


def find_movie_by_external_id(db: Client, external_id: str) -> dict[str, Any] | None:
    rows = execute(
        db.table(TABLE).select("*").eq("external_id", str(external_id)).limit(1),
        "finding movie by external id",
    )
    return first_or_none(rows)


def insert_movie(db: Client, movie: Mapping[str, Any]) -> dict[str, Any]:
    now = now_utc_iso()
    payload = dict(movie)
    payload.setdefault("provider", "local")
    payload["created_at"] = now
    payload["updated_at"] = now
    rows = execute(db.table(TABLE).insert(payload), "inserting movie")
    if not rows:
        raise RuntimeError("Supabase insert returned no data for movie.")
    return rows[0]


def update_movie(db: Client, movie_id: UUID | str, patch: Mapping[str, Any]) -> dict[str, Any] | None:
    payload = {key: value for key, value in patch.items() if key in EDITABLE_COLUMNS}
    payload["updated_at"] = now_utc_iso()
    rows = execute(db.table(TABLE).update(payload).eq("id", str(movie_id)), "updating movie")
    return first_or_none(rows)


def delete_movie(db: Client, movie_id: UUID | str) -> bool:
    rows = execute(db.table(TABLE).delete().eq("id", str(movie_id)), "deleting movie")
    return bool(rows)
