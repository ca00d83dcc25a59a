"""
Store capability and query execution.

A `StoreHandle` is resolved once per request: either it wraps a Supabase
client (available) or it records why the store cannot be used (unavailable).
Callers branch on `handle.available` instead of probing a global connection.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from streamia_backend.errors import ConflictError, RepositoryError, StoreUnavailableError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


@dataclass(frozen=True)
class StoreHandle:
    client: Client | None = None
    reason: str | None = None

    @classmethod
    def connected(cls, client: Client) -> "StoreHandle":
        return cls(client=client)

    @classmethod
    def unavailable(cls, reason: str) -> "StoreHandle":
        return cls(client=None, reason=reason)

    @property
    def available(self) -> bool:
        return self.client is not None

    def require(self) -> Client:
        """Return the client or raise `StoreUnavailableError` (503)."""
        if self.client is None:
            raise StoreUnavailableError("Database unavailable, please try again later")
        return self.client


def _raise_for_supabase_error(response: Any, context: str) -> None:
    if hasattr(response, "error") and response.error:
        logger.error(f"Supabase error during {context}: {response.error}")
        raise RepositoryError(f"Database error during {context}")


def execute(query: Any, context: str) -> list[dict[str, Any]]:
    """
    Run a PostgREST query builder and return its rows.

    Transport failures become `StoreUnavailableError`, unique violations become
    `ConflictError`, anything else the store reports becomes `RepositoryError`.
    """
    try:
        response = query.execute()
    except httpx.HTTPError as exc:
        logger.warning(f"Store unreachable during {context}: {exc}")
        raise StoreUnavailableError("Database unavailable, please try again later") from exc
    except APIError as exc:
        if getattr(exc, "code", None) == UNIQUE_VIOLATION:
            raise ConflictError(f"Duplicate record during {context}") from exc
        logger.error(f"Supabase error during {context}: {exc}")
        raise RepositoryError(f"Database error during {context}") from exc

    _raise_for_supabase_error(response, context)
    data = response.data
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)


def is_uuid(value: object) -> bool:
    """True only for the canonical hyphenated form that `uuid` columns accept."""
    text = str(value)
    try:
        parsed = UUID(text)
    except ValueError:
        return False
    return str(parsed) == text.lower()


def first_or_none(rows: list[dict[str, Any]]) -> dict[str, Any] | None:
    return rows[0] if rows else None
