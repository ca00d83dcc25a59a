"""
Repository layer for DB access patterns.

Each module wraps one Supabase table; functions take the client explicitly and
return plain row dicts.
"""

from streamia_backend.repositories.movies import (
    find_movie_by_external_id,
    find_movie_by_id,
    has_any_movie,
    insert_movie,
    is_internal_id,
    list_recent_movies,
    search_movies,
)

__all__ = [
    "find_movie_by_external_id",
    "find_movie_by_id",
    "has_any_movie",
    "insert_movie",
    "is_internal_id",
    "list_recent_movies",
    "search_movies",
]
