"""
Streamia Backend API - FastAPI application.

Provides endpoints for:
- Account registration, login and password recovery
- Browsing the movie catalog (Supabase store with Pexels fallback)
- Favorites, star ratings and comments
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.deps import get_mailer, get_token_issuer
from api.errors import register_exception_handlers
from api.rate_limit import api_limiter
from api.routers import comments, favorites, movies, ratings, users
from streamia_backend.settings import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup: a signing key is required outside development, a real mailer in production
    logger.info(f"Starting up Streamia Backend API ({get_settings().app_env})...")
    get_token_issuer()
    get_mailer()
    if not get_settings().store_configured:
        logger.warning("Supabase is not configured; catalog reads fall back to Pexels and CRUD routes answer 503")
    yield
    logger.info("Shutting down Streamia Backend API...")


app = FastAPI(
    title="Streamia API",
    description="Backend API for Streamia - movie catalog, accounts, favorites, ratings and comments",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# CORS configuration
# If no origins configured, allows all origins but disables credentials
cors_origins = settings.cors_allow_origins
allow_credentials = len(cors_origins) > 0

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if cors_origins else ["*"],
    allow_credentials=allow_credentials,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include routers
api_dependencies = [Depends(api_limiter)]
app.include_router(users.router, prefix="/api", dependencies=api_dependencies)
app.include_router(movies.router, prefix="/api", dependencies=api_dependencies)
app.include_router(favorites.router, prefix="/api", dependencies=api_dependencies)
app.include_router(ratings.router, prefix="/api", dependencies=api_dependencies)
app.include_router(comments.router, prefix="/api", dependencies=api_dependencies)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "streamia-backend"}


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy", "store": "configured" if get_settings().store_configured else "unconfigured"}
