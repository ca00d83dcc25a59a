from __future__ import annotations

import pytest

from streamia_backend.settings import load_settings
from streamia_backend.utils.env import env_bool, env_list


def test_defaults_in_development(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "development")
    monkeypatch.delenv("RATE_LIMIT_ENABLED", raising=False)
    monkeypatch.delenv("JWT_SECRET", raising=False)

    settings = load_settings()

    assert settings.is_development
    assert settings.rate_limit_enabled is False
    assert settings.jwt_secret is None
    assert settings.jwt_expires_hours == 2
    assert settings.store_configured is False


def test_production_enables_rate_limiting(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "Production")
    monkeypatch.delenv("RATE_LIMIT_ENABLED", raising=False)

    settings = load_settings()

    assert settings.app_env == "production"
    assert settings.rate_limit_enabled is True


def test_store_configured_and_lists(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.example, ,https://b.example")
    monkeypatch.setenv("FRONTEND_URL", "https://streamia.example/")

    settings = load_settings()

    assert settings.store_configured
    assert settings.cors_allow_origins == ["https://a.example", "https://b.example"]
    assert settings.frontend_url == "https://streamia.example"


def test_env_bool_rejects_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FLAG", "maybe")
    with pytest.raises(ValueError, match="FLAG"):
        env_bool("FLAG", False)


def test_env_list_blank(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EMPTY_LIST", raising=False)
    assert env_list("EMPTY_LIST") == []
