"""
Runtime configuration for the Streamia backend.

All values come from the environment (optionally seeded from a `.env` file).
`get_settings()` is cached; tests call `get_settings.cache_clear()` after
changing the environment.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache

from streamia_backend.utils.env import env_bool, env_int, env_list, env_str, load_env

DEVELOPMENT = "development"
PRODUCTION = "production"
TEST = "test"

DEFAULT_FRONTEND_URL = "http://localhost:3000"


@dataclass(frozen=True)
class Settings:
    app_env: str = DEVELOPMENT
    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"
    jwt_expires_hours: int = 2
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    pexels_api_key: str | None = None
    pexels_page_size: int = 15
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    email_from: str = "noreply@streamia.com"
    frontend_url: str = DEFAULT_FRONTEND_URL
    cors_allow_origins: list[str] = field(default_factory=list)
    rate_limit_enabled: bool = True
    log_level: str = "INFO"
    port: int = 8000

    @property
    def is_development(self) -> bool:
        return self.app_env == DEVELOPMENT

    @property
    def store_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)


def load_settings() -> Settings:
    """Read settings from the environment without caching."""
    app_env = (env_str("APP_ENV", DEVELOPMENT) or DEVELOPMENT).casefold()
    return Settings(
        app_env=app_env,
        jwt_secret=env_str("JWT_SECRET"),
        jwt_algorithm=env_str("JWT_ALGORITHM", "HS256") or "HS256",
        jwt_expires_hours=env_int("JWT_EXPIRES_HOURS", 2),
        supabase_url=env_str("SUPABASE_URL"),
        supabase_service_key=env_str("SUPABASE_SERVICE_ROLE_KEY"),
        pexels_api_key=env_str("PEXELS_API_KEY"),
        pexels_page_size=env_int("PEXELS_PAGE_SIZE", 15),
        smtp_host=env_str("SMTP_HOST"),
        smtp_port=env_int("SMTP_PORT", 587),
        smtp_username=env_str("SMTP_USERNAME"),
        smtp_password=env_str("SMTP_PASSWORD"),
        smtp_use_tls=env_bool("SMTP_USE_TLS", True),
        email_from=env_str("EMAIL_FROM", "noreply@streamia.com") or "noreply@streamia.com",
        frontend_url=(env_str("FRONTEND_URL", DEFAULT_FRONTEND_URL) or DEFAULT_FRONTEND_URL).rstrip("/"),
        cors_allow_origins=env_list("CORS_ALLOW_ORIGINS"),
        rate_limit_enabled=env_bool("RATE_LIMIT_ENABLED", app_env != DEVELOPMENT),
        log_level=(env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
        port=env_int("PORT", 8000),
    )


@lru_cache
def get_settings() -> Settings:
    load_env()
    return load_settings()
