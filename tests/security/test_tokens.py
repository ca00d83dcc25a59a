from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from streamia_backend.errors import ConfigurationError
from streamia_backend.security.tokens import TokenClaims, TokenIssuer, build_token_issuer, resolve_signing_key
from streamia_backend.settings import Settings


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now


def test_issue_and_verify_roundtrip() -> None:
    issuer = TokenIssuer("secret")
    token = issuer.issue("acc-1", "ana@example.com")
    assert issuer.verify(token) == TokenClaims(account_id="acc-1", email="ana@example.com")


def test_token_valid_until_exactly_two_hours() -> None:
    clock = _Clock()
    issuer = TokenIssuer("secret", clock=clock)
    token = issuer.issue("acc-1", "ana@example.com")

    clock.now += timedelta(hours=2) - timedelta(seconds=1)
    assert issuer.verify(token) is not None

    clock.now += timedelta(seconds=1)
    assert issuer.verify(token) is None


def test_claims_carry_subject_email_and_expiry() -> None:
    clock = _Clock()
    token = TokenIssuer("secret", clock=clock).issue("acc-1", "ana@example.com")

    claims = jwt.get_unverified_claims(token)

    assert claims["sub"] == "acc-1"
    assert claims["email"] == "ana@example.com"
    assert claims["exp"] - claims["iat"] == 2 * 60 * 60


def test_tampered_or_foreign_tokens_are_rejected() -> None:
    issuer = TokenIssuer("secret")
    token = issuer.issue("acc-1", "ana@example.com")

    header, _payload, signature = token.split(".")
    forged_payload = TokenIssuer("other").issue("acc-2", "ana@example.com").split(".")[1]

    assert TokenIssuer("other").verify(token) is None
    assert issuer.verify(f"{header}.{forged_payload}.{signature}") is None
    assert issuer.verify("garbage") is None


def test_token_without_email_is_rejected() -> None:
    token = jwt.encode({"sub": "acc-1", "exp": 4102444800}, "secret", algorithm="HS256")
    assert TokenIssuer("secret").verify(token) is None


def test_empty_secret_is_refused() -> None:
    with pytest.raises(ConfigurationError):
        TokenIssuer("")


def test_missing_secret_outside_development_is_fatal() -> None:
    with pytest.raises(ConfigurationError, match="JWT_SECRET"):
        build_token_issuer(Settings(app_env="production", jwt_secret=None))


def test_missing_secret_in_development_uses_random_key() -> None:
    settings = Settings(app_env="development", jwt_secret=None)
    first = resolve_signing_key(settings)
    second = resolve_signing_key(settings)
    assert first and second and first != second


def test_expiry_follows_settings() -> None:
    issuer = build_token_issuer(Settings(app_env="test", jwt_secret="s", jwt_expires_hours=5))
    assert issuer.lifetime == timedelta(hours=5)


def test_two_hour_token_accepted_after_one_hour_rejected_after_three() -> None:
    clock = _Clock()
    issuer = TokenIssuer("secret", lifetime=timedelta(hours=2), clock=clock)
    token = issuer.issue("acc-1", "ana@example.com")

    clock.now += timedelta(hours=1)
    assert issuer.verify(token) is not None

    clock.now += timedelta(hours=2)
    assert issuer.verify(token) is None
