"""
Dependency injection for the store handle, catalog resolver and other shared resources.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from supabase import Client

from streamia_backend.catalog.cache import TTLCache
from streamia_backend.catalog.resolver import CatalogResolver
from streamia_backend.db.store import StoreHandle
from streamia_backend.db.supabase import get_shared_admin_client
from streamia_backend.integrations.pexels.client import PexelsClient
from streamia_backend.mail.mailer import Mailer, build_mailer
from streamia_backend.security.tokens import TokenIssuer, build_token_issuer
from streamia_backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)

POPULAR_CACHE_TTL_SECONDS = 60.0


def get_store_handle() -> StoreHandle:
    """
    Resolve the store capability for this request.

    An unconfigured or unbuildable client yields an unavailable handle; the
    catalog falls back to Pexels and CRUD routes answer 503.
    """
    settings = get_settings()
    if not settings.store_configured:
        return StoreHandle.unavailable("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set")
    try:
        client = get_shared_admin_client()
    except Exception as e:
        logger.error(f"Failed to create Supabase client: {e}")
        return StoreHandle.unavailable(f"client creation failed: {e}")
    return StoreHandle.connected(client)


def require_store_client(store: Annotated[StoreHandle, Depends(get_store_handle)]) -> Client:
    return store.require()


@lru_cache
def get_popular_cache() -> TTLCache:
    return TTLCache(POPULAR_CACHE_TTL_SECONDS)


@lru_cache
def get_pexels_client() -> PexelsClient:
    return PexelsClient(get_settings().pexels_api_key)


@lru_cache
def get_catalog_resolver() -> CatalogResolver:
    return CatalogResolver(
        get_pexels_client(),
        get_popular_cache(),
        page_size=get_settings().pexels_page_size,
    )


@lru_cache
def get_token_issuer() -> TokenIssuer:
    return build_token_issuer(get_settings())


@lru_cache
def get_mailer() -> Mailer:
    return build_mailer(get_settings())


# Type aliases for dependency injection
AppSettings = Annotated[Settings, Depends(get_settings)]
Store = Annotated[StoreHandle, Depends(get_store_handle)]
StoreClient = Annotated[Client, Depends(require_store_client)]
Resolver = Annotated[CatalogResolver, Depends(get_catalog_resolver)]
Issuer = Annotated[TokenIssuer, Depends(get_token_issuer)]
MailerDep = Annotated[Mailer, Depends(get_mailer)]
