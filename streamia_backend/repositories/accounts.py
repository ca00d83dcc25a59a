from __future__ import annotations

from typing import Any, Mapping
from uuid import UUID

from supabase import Client

from streamia_backend.db.store import execute, first_or_none
from streamia_backend.utils.clock import now_utc_iso

TABLE = "accounts"

# Never leave the repository layer unless explicitly requested.
SECRET_COLUMNS = ("password_hash", "reset_token_hash", "reset_token_expires_at")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def to_public_account(row: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in row.items() if key not in SECRET_COLUMNS}


def find_account_by_email(db: Client, email: str, *, include_secrets: bool = False) -> dict[str, Any] | None:
    rows = execute(
        db.table(TABLE).select("*").eq("email", normalize_email(email)).limit(1),
        "finding account by email",
    )
    row = first_or_none(rows)
    if row is None or include_secrets:
        return row
    return to_public_account(row)


def find_account_by_id(db: Client, account_id: UUID | str, *, include_secrets: bool = False) -> dict[str, Any] | None:
    rows = execute(
        db.table(TABLE).select("*").eq("id", str(account_id)).limit(1),
        "finding account by id",
    )
    row = first_or_none(rows)
    if row is None or include_secrets:
        return row
    return to_public_account(row)


def fetch_accounts_by_ids(db: Client, account_ids: list[str]) -> dict[str, dict[str, Any]]:
    if not account_ids:
        return {}
    rows = execute(
        db.table(TABLE).select("*").in_("id", sorted(set(account_ids))),
        "fetching accounts by id",
    )
    return {str(row["id"]): to_public_account(row) for row in rows}


def insert_account(
    db: Client,
    *,
    first_name: str,
    last_name: str,
    age: int,
    email: str,
    password_hash: str,
) -> dict[str, Any]:
    now = now_utc_iso()
    payload = {
        "first_name": first_name,
        "last_name": last_name,
        "age": age,
        "email": normalize_email(email),
        "password_hash": password_hash,
        "created_at": now,
        "updated_at": now,
    }
    rows = execute(db.table(TABLE).insert(payload), "inserting account")
    if not rows:
        raise RuntimeError("Supabase insert returned no data for account.")
    return to_public_account(rows[0])


def update_account(db: Client, account_id: UUID | str, patch: Mapping[str, Any]) -> dict[str, Any] | None:
    payload = dict(patch)
    if "email" in payload and payload["email"]:
        payload["email"] = normalize_email(payload["email"])
    payload["updated_at"] = now_utc_iso()
    rows = execute(db.table(TABLE).update(payload).eq("id", str(account_id)), "updating account")
    row = first_or_none(rows)
    return to_public_account(row) if row is not None else None


def delete_account(db: Client, account_id: UUID | str) -> bool:
    rows = execute(db.table(TABLE).delete().eq("id", str(account_id)), "deleting account")
    return bool(rows)


def set_password_hash(db: Client, account_id: UUID | str, password_hash: str) -> dict[str, Any] | None:
    """Store a new password hash and invalidate any pending reset token."""
    return update_account(
        db,
        account_id,
        {
            "password_hash": password_hash,
            "reset_token_hash": None,
            "reset_token_expires_at": None,
        },
    )


def store_reset_token(db: Client, account_id: UUID | str, token_hash: str, expires_at: str) -> None:
    update_account(
        db,
        account_id,
        {"reset_token_hash": token_hash, "reset_token_expires_at": expires_at},
    )


def find_account_by_reset_token(db: Client, token_hash: str, *, now_iso: str) -> dict[str, Any] | None:
    """Return the account holding an unexpired reset token with this hash."""
    rows = execute(
        db.table(TABLE).select("*").eq("reset_token_hash", token_hash).gt("reset_token_expires_at", now_iso).limit(1),
        "finding account by reset token",
    )
    return first_or_none(rows)
