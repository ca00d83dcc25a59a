"""
Catalog resolver.

Answers "list movies", "get movie by id" and "explore movies" while hiding
whether the Supabase store or the Pexels provider is serving the data:

- store reachable and non-empty: serve from the store (`source="store"`)
- store reachable but empty: fetch popular Pexels videos, backfill the store,
  re-query (`source="store"`)
- store unreachable: serve normalized Pexels data (`source="external"`)

The Pexels call is cached per request shape for `TTLCache.ttl_seconds`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from supabase import Client

from streamia_backend.catalog.cache import TTLCache
from streamia_backend.db.store import StoreHandle
from streamia_backend.errors import (
    ConflictError,
    NotFoundError,
    RepositoryError,
    StoreUnavailableError,
    UpstreamUnavailableError,
)
from streamia_backend.integrations.pexels.client import PexelsClient, PexelsClientError
from streamia_backend.integrations.pexels.normalize import NormalizedMovie, normalize_videos
from streamia_backend.repositories.movies import (
    DEFAULT_LIMIT,
    find_movie_by_external_id,
    find_movie_by_id,
    has_any_movie,
    insert_movie,
    is_internal_id,
    list_recent_movies,
    search_movies,
)

logger = logging.getLogger(__name__)

SOURCE_STORE = "store"
SOURCE_EXTERNAL = "external"

DEFAULT_PAGE_SIZE = 15


@dataclass
class CatalogResult:
    data: list[dict[str, Any]]
    source: str
    message: str | None = None
    filters: dict[str, str | None] | None = None
    backfilled: int = 0

    @property
    def total(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class MovieResult:
    data: dict[str, Any]
    source: str


@dataclass
class BackfillReport:
    inserted: int = 0
    skipped: int = 0
    failed: list[str] = field(default_factory=list)


def _matches(value: str | None, term: str | None) -> bool:
    if not term:
        return True
    return term.casefold() in (value or "").casefold()


class CatalogResolver:
    def __init__(
        self,
        provider: PexelsClient,
        cache: TTLCache,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        list_limit: int = DEFAULT_LIMIT,
    ) -> None:
        self.provider = provider
        self.cache = cache
        self.page_size = page_size
        self.list_limit = list_limit

    # --- external provider ---

    def fetch_popular(self) -> list[NormalizedMovie]:
        """
        Normalized popular videos, served from the cache when fresh.

        Raises `UpstreamUnavailableError` when Pexels cannot be reached.
        """
        key = f"popular:{self.page_size}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            raw_items = self.provider.popular_videos(per_page=self.page_size)
        except PexelsClientError as exc:
            logger.error(f"Pexels popular fetch failed: {exc}")
            raise UpstreamUnavailableError("External video service unavailable") from exc

        items = normalize_videos(raw_items)
        self.cache.set(key, items)
        return items

    def backfill(self, db: Client, items: list[NormalizedMovie]) -> BackfillReport:
        """
        Persist items not yet mirrored in the store (matched by `external_id`).

        Best effort: a failing item is logged and the rest are still attempted.
        """
        report = BackfillReport()
        for item in items:
            try:
                if find_movie_by_external_id(db, item.external_id) is not None:
                    report.skipped += 1
                    continue
                insert_movie(db, item.to_row())
                report.inserted += 1
            except ConflictError:
                # Another request mirrored it first.
                report.skipped += 1
            except (RepositoryError, StoreUnavailableError, RuntimeError) as exc:
                logger.error(f"Backfill failed for external id {item.external_id}: {exc}")
                report.failed.append(item.external_id)
        if report.inserted or report.failed:
            logger.info(
                f"Catalog backfill: inserted={report.inserted} skipped={report.skipped} failed={len(report.failed)}"
            )
        return report

    def _external_rows(self) -> list[dict[str, Any]]:
        return [item.to_row() for item in self.fetch_popular()]

    def _backfill_from_provider(self, db: Client) -> int:
        try:
            items = self.fetch_popular()
        except UpstreamUnavailableError:
            logger.warning("Catalog store is empty and Pexels is unavailable; nothing to backfill")
            return 0
        return self.backfill(db, items).inserted

    # --- catalog reads ---

    def list_movies(self, store: StoreHandle) -> CatalogResult:
        if store.available:
            db = store.require()
            inserted = 0
            try:
                rows = list_recent_movies(db, limit=self.list_limit)
                if not rows:
                    inserted = self._backfill_from_provider(db)
                    rows = list_recent_movies(db, limit=self.list_limit)
            except StoreUnavailableError:
                logger.warning("Catalog store unreachable; serving movies from Pexels")
            else:
                message = None if rows else "No movies available"
                return CatalogResult(data=rows, source=SOURCE_STORE, message=message, backfilled=inserted)
        else:
            logger.info(f"Catalog store unavailable ({store.reason}); serving movies from Pexels")

        return CatalogResult(data=self._external_rows(), source=SOURCE_EXTERNAL)

    def get_movie_by_id(self, store: StoreHandle, movie_id: str) -> MovieResult:
        if store.available:
            db = store.require()
            try:
                movie = find_movie_by_id(db, movie_id) if is_internal_id(movie_id) else None
                if movie is None:
                    movie = find_movie_by_external_id(db, movie_id)
            except StoreUnavailableError:
                logger.warning(f"Catalog store unreachable; looking up movie {movie_id} on Pexels")
            else:
                if movie is None:
                    raise NotFoundError("Movie not found")
                return MovieResult(data=movie, source=SOURCE_STORE)

        for row in self._external_rows():
            if row["external_id"] == str(movie_id):
                return MovieResult(data=row, source=SOURCE_EXTERNAL)
        raise NotFoundError("Movie not found")

    def explore_movies(
        self,
        store: StoreHandle,
        *,
        category: str | None = None,
        search: str | None = None,
    ) -> CatalogResult:
        category = (category or "").strip() or None
        search = (search or "").strip() or None
        filters = {"category": category, "search": search}

        if store.available:
            db = store.require()
            try:
                rows = search_movies(db, category=category, search=search, limit=self.list_limit)
                backfilled = 0
                if not rows and not has_any_movie(db):
                    backfilled = self._backfill_from_provider(db)
                    rows = search_movies(db, category=category, search=search, limit=self.list_limit)
            except StoreUnavailableError:
                logger.warning("Catalog store unreachable; exploring Pexels movies")
            else:
                return self._explore_result(rows, SOURCE_STORE, filters, backfilled=backfilled)

        rows = [
            row
            for row in self._external_rows()
            if _matches(row.get("title"), search) and _matches(row.get("category"), category)
        ]
        return self._explore_result(rows, SOURCE_EXTERNAL, filters)

    @staticmethod
    def _explore_result(
        rows: list[dict[str, Any]],
        source: str,
        filters: dict[str, str | None],
        *,
        backfilled: int = 0,
    ) -> CatalogResult:
        message = None
        if not rows:
            if filters.get("search"):
                message = "No movies found matching your search"
            else:
                message = "No movies available in this category"
        return CatalogResult(data=rows, source=source, message=message, filters=filters, backfilled=backfilled)
