from __future__ import annotations

from typing import Any
from uuid import UUID

from supabase import Client

from streamia_backend.db.store import execute, first_or_none
from streamia_backend.repositories.accounts import fetch_accounts_by_ids
from streamia_backend.utils.clock import now_utc_iso

TABLE = "comments"


def insert_comment(db: Client, *, account_id: UUID | str, movie_id: str, text: str) -> dict[str, Any]:
    now = now_utc_iso()
    payload = {
        "account_id": str(account_id),
        "movie_id": movie_id,
        "text": text,
        "created_at": now,
        "updated_at": now,
    }
    rows = execute(db.table(TABLE).insert(payload), "inserting comment")
    if not rows:
        raise RuntimeError("Supabase insert returned no data for comment.")
    return rows[0]


def list_comments_for_movie(db: Client, movie_id: str) -> list[dict[str, Any]]:
    """Newest first, each row carrying an `author` with the public name fields."""
    rows = execute(
        db.table(TABLE).select("*").eq("movie_id", movie_id).order("created_at", desc=True),
        "listing comments",
    )
    authors = fetch_accounts_by_ids(db, [str(row["account_id"]) for row in rows])
    for row in rows:
        author = authors.get(str(row["account_id"]))
        row["author"] = (
            {"id": author["id"], "first_name": author.get("first_name"), "last_name": author.get("last_name")}
            if author
            else None
        )
    return rows


def update_comment_text(
    db: Client,
    comment_id: UUID | str,
    account_id: UUID | str,
    text: str,
) -> dict[str, Any] | None:
    rows = execute(
        db.table(TABLE)
        .update({"text": text, "updated_at": now_utc_iso()})
        .eq("id", str(comment_id))
        .eq("account_id", str(account_id)),
        "updating comment",
    )
    return first_or_none(rows)


def delete_comment(db: Client, comment_id: UUID | str, account_id: UUID | str) -> bool:
    rows = execute(
        db.table(TABLE).delete().eq("id", str(comment_id)).eq("account_id", str(account_id)),
        "deleting comment",
    )
    return bool(rows)
