"""
Shared Streamia backend library code.

This package holds everything the FastAPI app in `api/` builds on:
- settings and `.env` loading
- the Supabase store handle and repositories
- the Pexels integration and the catalog resolver
- token, password and mail helpers

App entrypoints (FastAPI routers) should live outside this package and
import from `streamia_backend` rather than the other way around.
"""
