from __future__ import annotations

from functools import lru_cache

from supabase import Client, create_client

from streamia_backend.settings import get_settings


def get_supabase_url() -> str:
    url = get_settings().supabase_url
    if not url:
        raise RuntimeError("SUPABASE_URL environment variable is not set")
    return url


def get_supabase_service_key() -> str:
    key = get_settings().supabase_service_key
    if not key:
        raise RuntimeError("SUPABASE_SERVICE_ROLE_KEY environment variable is not set")
    return key


def create_supabase_admin_client(*, url: str | None = None, service_role_key: str | None = None) -> Client:
    """
    Create a Supabase client using the service role key (bypasses RLS).

    Ownership checks are enforced by the API layer, so a single service-role
    client is shared by all requests.
    """

    return create_client(url or get_supabase_url(), service_role_key or get_supabase_service_key())


@lru_cache(maxsize=1)
def get_shared_admin_client() -> Client:
    return create_supabase_admin_client()
