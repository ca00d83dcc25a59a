"""
Catalog resolution: decides whether movie reads come from the store or Pexels.
"""

from streamia_backend.catalog.cache import TTLCache
from streamia_backend.catalog.resolver import CatalogResolver, CatalogResult

__all__ = [
    "CatalogResolver",
    "CatalogResult",
    "TTLCache",
]
