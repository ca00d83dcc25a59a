"""
Database helpers for the Streamia backend.
"""

from streamia_backend.db.store import StoreHandle, execute, first_or_none
from streamia_backend.db.supabase import create_supabase_admin_client, get_shared_admin_client

__all__ = [
    "StoreHandle",
    "create_supabase_admin_client",
    "execute",
    "first_or_none",
    "get_shared_admin_client",
]
